"""Seed demo authors, articles, and engagement for local development."""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from articles.models import Article, Bookmark, Category, Comment, Like
from authentication.managers import hash_password

DEMO_USERS = [
    ("ada@example.com", "Ada Writer", "Writes about compilers and coffee."),
    ("grace@example.com", "Grace Reader", "Reads everything, comments often."),
    ("alan@example.com", "Alan Editor", ""),
]
DEMO_PASSWORD = "demopass"

DEMO_ARTICLES = [
    {
        "email": "ada@example.com",
        "title": "Getting started with Markdown",
        "content": "# Markdown\n\nWrite **bold** text, `inline code`, and lists.\n\n" + "word " * 240,
        "category": Category.TECHNOLOGY,
        "tags": ["markdown", "writing"],
        "published": True,
    },
    {
        "email": "ada@example.com",
        "title": "Draft: notes on sleep",
        "content": "Unfinished thoughts about rest and recovery.",
        "category": Category.HEALTH,
        "tags": ["health"],
        "published": False,
    },
    {
        "email": "alan@example.com",
        "title": "Small business bookkeeping",
        "content": "Keep receipts, reconcile weekly, and automate invoices.",
        "category": Category.BUSINESS,
        "tags": ["finance", "business"],
        "published": True,
    },
]


class Command(BaseCommand):
    """Management command to create demo users, articles, likes, and comments."""

    help = (
        "Seed demo users and articles with likes, bookmarks, and comments. "
        "Use --reset to remove previously seeded demo data first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete the demo users (and, by cascade, their articles) before seeding.",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        if options.get("reset"):
            self._reset_seeded_data()

        self.stdout.write("Seeding demo data...")
        with transaction.atomic():
            users = self._create_users()
            articles = self._create_articles(users)
            self._create_engagement(users, articles)
        self.stdout.write(self.style.SUCCESS(f"Demo seed completed ({len(articles)} articles)."))

    def _reset_seeded_data(self) -> None:
        User = get_user_model()
        emails = [email for email, _, _ in DEMO_USERS]
        User.objects.filter(email__in=emails).delete()
        self.stdout.write(self.style.WARNING("Demo data cleared."))

    @staticmethod
    def _create_users() -> dict:
        User = get_user_model()
        users = {}
        for email, name, bio in DEMO_USERS:
            user, _ = User.objects.get_or_create(
                email=email,
                defaults={
                    "name": name,
                    "bio": bio,
                    "password_hash": hash_password(DEMO_PASSWORD),
                },
            )
            users[email] = user
        return users

    @staticmethod
    def _create_articles(users) -> list[Article]:
        articles = []
        for entry in DEMO_ARTICLES:
            article, created = Article.objects.get_or_create(
                title=entry["title"],
                author=users[entry["email"]],
                defaults={
                    "content": entry["content"],
                    "category": entry["category"],
                    "published": entry["published"],
                },
            )
            if created:
                article.set_tags(entry["tags"])
            articles.append(article)
        return articles

    @staticmethod
    def _create_engagement(users, articles) -> None:
        reader = users["grace@example.com"]
        for article in articles:
            if not article.published:
                continue
            Like.objects.get_or_create(article=article, user=reader)
            Bookmark.objects.get_or_create(article=article, user=reader)
            Comment.objects.get_or_create(
                article=article,
                user=reader,
                defaults={"content": "Thanks for writing this up!"},
            )
        reader.following.add(users["ada@example.com"])
