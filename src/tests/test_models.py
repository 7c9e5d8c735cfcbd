"""Tests for article derived fields: read time, excerpt, publish timestamp."""

from __future__ import annotations

from django.test import SimpleTestCase, TestCase, override_settings

from articles.models import Article, compute_read_time, derive_excerpt
from tests.utils import create_article, create_user


class DerivationHelperTests(SimpleTestCase):
    def test_read_time_rounds_up_and_never_drops_below_one(self):
        self.assertEqual(compute_read_time(""), 1)
        self.assertEqual(compute_read_time("word " * 200), 1)
        self.assertEqual(compute_read_time("word " * 201), 2)
        self.assertEqual(compute_read_time("word " * 250), 2)

    def test_excerpt_strips_markdown_markers(self):
        self.assertEqual(derive_excerpt("# Title with **bold** and `code`"), "Title with bold and code")

    def test_excerpt_is_capped_at_300_characters(self):
        excerpt = derive_excerpt("x" * 1000)
        self.assertEqual(len(excerpt), 300)
        self.assertTrue(excerpt.endswith("..."))

    def test_short_excerpt_is_unchanged(self):
        self.assertEqual(derive_excerpt("x" * 300), "x" * 300)


@override_settings(BCRYPT_ROUNDS=4)
class ArticleSaveTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.author = create_user("author@example.com")

    def test_draft_with_250_words(self):
        article = create_article(self.author, content="word " * 250)

        self.assertEqual(article.read_time, 2)
        self.assertTrue(article.excerpt)
        self.assertIsNone(article.published_at)

    def test_published_at_is_stamped_once(self):
        article = create_article(self.author)
        article.published = True
        article.save()
        first_published_at = article.published_at
        self.assertIsNotNone(first_published_at)

        article.published = False
        article.save()
        article.published = True
        article.save()
        article.refresh_from_db()
        self.assertEqual(article.published_at, first_published_at)

    def test_read_time_follows_content_changes(self):
        article = create_article(self.author, content="short")
        self.assertEqual(article.read_time, 1)

        article = Article.objects.get(pk=article.pk)
        article.content = "word " * 401
        article.save()
        self.assertEqual(article.read_time, 3)

    def test_explicit_excerpt_is_kept(self):
        article = create_article(self.author, content="body " * 100, excerpt="Hand written")
        self.assertEqual(article.excerpt, "Hand written")

    def test_derived_excerpt_survives_content_edits(self):
        article = create_article(self.author, content="First draft")
        self.assertEqual(article.excerpt, "First draft")

        article = Article.objects.get(pk=article.pk)
        article.content = "Rewritten body"
        article.save()
        self.assertEqual(article.excerpt, "First draft")

        article.excerpt = ""
        article.content = "Rewritten again"
        article.save()
        self.assertEqual(article.excerpt, "Rewritten again")

    def test_set_tags_preserves_order_and_drops_duplicates(self):
        article = create_article(self.author, tags=["python", "django", "python"])
        self.assertEqual(article.tag_names, ["python", "django"])
