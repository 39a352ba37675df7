"""Tests for authors, books, chapters, store publishing and sales analytics."""

from __future__ import annotations

import pytest

from hardban_lab.exceptions import ValidationFailed
from hardban_lab.services.books import normalize_isbn, word_count


def create_book(client, headers, author_id, **fields):
    payload = {"author_id": author_id, "title": "Signal Path", **fields}
    response = client.post("/api/publishing/books", json=payload, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["book"]


@pytest.fixture
def book(client, user_headers, author):
    return create_book(client, user_headers, author["id"], chapters=[
        {"title": "Noise", "content": "In the beginning there was hum."},
        {"title": "Gain", "content": "Turn it up."},
    ])


@pytest.fixture
def review_book(client, user_headers, book):
    response = client.post(f"/api/publishing/books/{book['id']}/submit", headers=user_headers)
    assert response.status_code == 200
    return book


class TestIsbn:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("978-0-306-40615-7", "9780306406157"),
            ("0-306-40615-2", "0306406152"),
            ("0 8044 2957 x", "080442957X"),
            ("", None),
            (None, None),
        ],
    )
    def test_valid(self, raw, expected):
        assert normalize_isbn(raw) == expected

    @pytest.mark.parametrize("raw", ["978-0-306-40615-8", "12345", "0-306-40615-3"])
    def test_invalid(self, raw):
        with pytest.raises(ValidationFailed):
            normalize_isbn(raw)


def test_word_count():
    assert word_count("one  two\nthree") == 3
    assert word_count(None) == 0


class TestAuthors:
    def test_crud(self, client, user_headers, author):
        url = f"/api/publishing/authors/{author['id']}"
        assert author["status"] == "active"

        updated = client.patch(url, json={"contact_email": "ada@example.com"}, headers=user_headers).json()["author"]
        assert updated["contact_email"] == "ada@example.com"

        fetched = client.get(url, headers=user_headers).json()["author"]
        assert fetched["stats"] == {"total_books": 0, "published_books": 0, "total_sales": 0, "total_revenue": 0.0}

        listed = client.get("/api/publishing/authors?name=quill", headers=user_headers).json()
        assert [a["id"] for a in listed["items"]] == [author["id"]]

        assert client.delete(url, headers=user_headers).status_code == 200
        assert client.get(url, headers=user_headers).status_code == 404

    def test_null_name_is_rejected(self, client, user_headers, author):
        response = client.patch(
            f"/api/publishing/authors/{author['id']}", json={"name": None}, headers=user_headers
        )
        assert response.status_code == 400
        assert any("name cannot be null" in error for error in response.json()["errors"])

    def test_deleting_author_removes_books(self, client, user_headers, author, book):
        client.delete(f"/api/publishing/authors/{author['id']}", headers=user_headers)
        assert client.get(f"/api/publishing/books/{book['id']}", headers=user_headers).status_code == 404


class TestBooks:
    def test_create_with_chapters_rights_and_splits(self, client, user_headers, author):
        book = create_book(
            client, user_headers, author["id"],
            isbn="978-0-306-40615-7",
            price="12.99",
            rights={"audio": True},
            chapters=[{"title": "One", "content": "a b c"}, {"title": "Two", "content": "d e"}],
            splits=[{"name": "Ada Quill", "role": "artist", "percentage": 70}],
        )

        assert book["status"] == "draft"
        assert book["language"] == "en"
        assert book["isbn"] == "9780306406157"
        assert book["price"] == 12.99
        assert book["rights"] == {
            "territorial": False, "translation": False, "adaptation": False, "audio": True, "drm": False,
        }
        assert book["author_name"] == "Ada Quill"
        assert [(c["chapter_number"], c["word_count"]) for c in book["chapters"]] == [(1, 3), (2, 2)]
        assert book["total_word_count"] == 5
        assert book["label_share"] == 30.0

    def test_invalid_book(self, client, user_headers, author):
        bad_isbn = client.post(
            "/api/publishing/books", json={"author_id": author["id"], "title": "X", "isbn": "123"}, headers=user_headers,
        )
        assert bad_isbn.status_code == 400
        assert bad_isbn.json()["message"] == "Invalid ISBN"

        bad_language = client.post(
            "/api/publishing/books", json={"author_id": author["id"], "title": "X", "language": "EN"},
            headers=user_headers,
        )
        assert bad_language.status_code == 400

        bad_splits = client.post(
            "/api/publishing/books",
            json={"author_id": author["id"], "title": "X", "splits": [{"name": "A", "percentage": 101}]},
            headers=user_headers,
        )
        assert bad_splits.status_code == 400
        assert client.get("/api/publishing/books", headers=user_headers).json()["items"] == []

    def test_unknown_author(self, client, user_headers):
        response = client.post("/api/publishing/books", json={"author_id": 5, "title": "X"}, headers=user_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Author not found"

    def test_update_replaces_chapters(self, client, user_headers, book):
        response = client.patch(
            f"/api/publishing/books/{book['id']}",
            json={"title": "Signal Path (2nd ed.)", "chapters": [{"title": "Only", "content": "x"}]},
            headers=user_headers,
        )

        updated = response.json()["book"]
        assert updated["title"] == "Signal Path (2nd ed.)"
        assert [c["title"] for c in updated["chapters"]] == ["Only"]

    def test_null_language_is_rejected(self, client, user_headers, book):
        response = client.patch(
            f"/api/publishing/books/{book['id']}", json={"language": None}, headers=user_headers
        )
        assert response.status_code == 400
        assert any("language cannot be null" in error for error in response.json()["errors"])

    def test_list_filters(self, client, user_headers, author, book):
        create_book(client, user_headers, author["id"], title="Other Book")
        client.post(f"/api/publishing/books/{book['id']}/submit", headers=user_headers)

        in_review = client.get("/api/publishing/books?status=review", headers=user_headers).json()
        assert [b["id"] for b in in_review["items"]] == [book["id"]]
        by_title = client.get("/api/publishing/books?q=other", headers=user_headers).json()
        assert [b["title"] for b in by_title["items"]] == ["Other Book"]

    def test_status_workflow(self, client, user_headers, book):
        url = f"/api/publishing/books/{book['id']}"

        early = client.post(f"{url}/publish", headers=user_headers)
        assert early.status_code == 409
        assert early.json()["message"] == "Only review books can be moved to published"

        assert client.post(f"{url}/submit", headers=user_headers).json()["book"]["status"] == "review"
        published = client.post(f"{url}/publish", headers=user_headers).json()["book"]
        assert published["status"] == "published"
        assert published["published_date"] is not None
        assert client.post(f"{url}/archive", headers=user_headers).json()["book"]["status"] == "archived"

    def test_book_without_chapters_cannot_be_submitted(self, client, user_headers, author):
        empty = create_book(client, user_headers, author["id"], title="Empty")
        response = client.post(f"/api/publishing/books/{empty['id']}/submit", headers=user_headers)
        assert response.status_code == 400

    def test_only_admin_deletes_books(self, client, user_headers, admin_headers, book):
        url = f"/api/publishing/books/{book['id']}"
        assert client.delete(url, headers=user_headers).status_code == 403
        assert client.delete(url, headers=admin_headers).status_code == 200
        assert client.get(f"{url}/chapters", headers=admin_headers).status_code == 404

    def test_cover_upload(self, client, user_headers, book):
        response = client.post(
            f"/api/publishing/books/{book['id']}/cover",
            files={"file": ("cover.jpg", b"jpeg", "image/jpeg")},
            headers=user_headers,
        )
        assert f"/uploads/books/{book['id']}/" in response.json()["book"]["cover_url"]

    def test_book_splits(self, client, user_headers, book):
        url = f"/api/publishing/books/{book['id']}/splits"
        saved = client.put(url, json={"splits": [
            {"name": "Ada Quill", "role": "artist", "percentage": 60},
            {"name": "Editor E", "role": "other", "percentage": 15},
        ]}, headers=user_headers).json()
        assert saved["total"] == 75.0
        assert client.get(url, headers=user_headers).json()["label_share"] == 25.0


class TestChapters:
    def test_add_update_delete(self, client, user_headers, book):
        chapters_url = f"/api/publishing/books/{book['id']}/chapters"
        added = client.post(chapters_url, json={"title": "Feedback"}, headers=user_headers).json()["chapter"]
        assert added["chapter_number"] == 3
        assert added["word_count"] == 0

        clash = client.post(chapters_url, json={"title": "Dup", "chapter_number": 1}, headers=user_headers)
        assert clash.status_code == 409

        updated = client.patch(
            f"/api/publishing/chapters/{added['id']}",
            json={"content": "loop loop loop loop", "status": "review"},
            headers=user_headers,
        ).json()["chapter"]
        assert (updated["word_count"], updated["status"]) == (4, "review")

        assert client.delete(f"/api/publishing/chapters/{added['id']}", headers=user_headers).status_code == 200
        titles = [c["title"] for c in client.get(chapters_url, headers=user_headers).json()["chapters"]]
        assert titles == ["Noise", "Gain"]

    def test_null_chapter_number_is_rejected(self, client, user_headers, book):
        chapter = client.get(f"/api/publishing/books/{book['id']}/chapters", headers=user_headers).json()["chapters"][0]

        response = client.patch(
            f"/api/publishing/chapters/{chapter['id']}", json={"chapter_number": None}, headers=user_headers
        )
        assert response.status_code == 400
        assert any("chapter_number cannot be null" in error for error in response.json()["errors"])

    def test_reorder(self, client, user_headers, book):
        chapters_url = f"/api/publishing/books/{book['id']}/chapters"
        client.post(chapters_url, json={"title": "Feedback"}, headers=user_headers)
        ids = [c["id"] for c in client.get(chapters_url, headers=user_headers).json()["chapters"]]

        reordered = client.put(
            f"{chapters_url}/order", json={"chapter_ids": list(reversed(ids))}, headers=user_headers,
        ).json()["chapters"]

        assert [c["title"] for c in reordered] == ["Feedback", "Gain", "Noise"]
        assert [c["chapter_number"] for c in reordered] == [1, 2, 3]

    def test_reorder_needs_every_chapter(self, client, user_headers, book):
        chapters_url = f"/api/publishing/books/{book['id']}/chapters"
        ids = [c["id"] for c in client.get(chapters_url, headers=user_headers).json()["chapters"]]

        response = client.put(f"{chapters_url}/order", json={"chapter_ids": ids[:1]}, headers=user_headers)
        assert response.status_code == 400


class TestStores:
    def test_stores_are_seeded(self, client, user_headers):
        stores = client.get("/api/publishing/stores", headers=user_headers).json()["stores"]
        assert len(stores) == 10
        assert "Apple Books" in {s["name"] for s in stores}

    def test_draft_cannot_go_to_stores(self, client, user_headers, book):
        response = client.post(f"/api/publishing/books/{book['id']}/stores", headers=user_headers)
        assert response.status_code == 409

    def test_publish_to_stores_and_track_delivery(self, client, user_headers, review_book):
        url = f"/api/publishing/books/{review_book['id']}/stores"
        created = client.post(url, json={"store_ids": [1, 2]}, headers=user_headers)
        assert created.status_code == 201
        assert created.json()["created"] == 2
        assert client.post(url, headers=user_headers).json()["created"] == 8

        publication = client.get(url, headers=user_headers).json()["publications"][0]
        pub_url = f"/api/publishing/store-publications/{publication['id']}"
        client.patch(pub_url, json={"status": "processing"}, headers=user_headers)
        live = client.patch(
            pub_url, json={"status": "live", "platform_url": "https://books.example/signal"}, headers=user_headers,
        ).json()["publication"]

        assert live["status"] == "live"
        assert live["store_url"] == "https://books.example/signal"
        assert live["live_at"] is not None

    def test_invalid_publication_transition(self, client, user_headers, review_book):
        url = f"/api/publishing/books/{review_book['id']}/stores"
        publication = client.post(url, headers=user_headers).json()["publications"][0]
        response = client.patch(
            f"/api/publishing/store-publications/{publication['id']}", json={"status": "taken_down"},
            headers=user_headers,
        )
        assert response.status_code == 409


class TestAnalytics:
    def test_record_sales_updates_book_and_overview(self, client, user_headers, book):
        for store, sales, revenue in (("Kobo", 3, "8.97"), ("Apple Books", 2, "5.98")):
            response = client.post("/api/publishing/analytics", json={
                "book_id": book["id"], "store": store, "date": "2024-03-01", "sales": sales, "revenue": revenue,
            }, headers=user_headers)
            assert response.status_code == 201

        fetched = client.get(f"/api/publishing/books/{book['id']}", headers=user_headers).json()["book"]
        assert (fetched["sales"], fetched["revenue"]) == (5, 14.95)

        overview = client.get("/api/publishing/analytics/overview", headers=user_headers).json()
        assert overview["total_sales"] == 5
        assert [s["store"] for s in overview["by_store"]] == ["Apple Books", "Kobo"]
        assert overview["top_books"][0]["book_id"] == book["id"]

        outside = client.get("/api/publishing/analytics/overview?start=2024-04-01", headers=user_headers).json()
        assert outside["total_sales"] == 0

    def test_sales_for_missing_book(self, client, user_headers):
        response = client.post("/api/publishing/analytics", json={
            "book_id": 9, "store": "Kobo", "date": "2024-03-01",
        }, headers=user_headers)
        assert response.status_code == 404
