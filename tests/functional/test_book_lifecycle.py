"""
Functional tests: full book lifecycle.
Create → add copies → borrow → blocked delete → return → delete → gone.
"""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient


class TestBookLifecycle:

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, client: AsyncClient, new_member):
        # 1. Create a book with an author and a genre
        author = (await client.post("/api/v1/authors", json={"name": "Frank Herbert"})).json()
        genre = (await client.post("/api/v1/genres", json={"name": "Science Fiction"})).json()
        resp = await client.post("/api/v1/books", json={
            "book_title": "Dune",
            "isbn": "9780441013593",
            "publication_year": 1965,
            "author_ids": [author["id"]],
            "genre_ids": [genre["id"]],
        })
        assert resp.status_code == 201
        book = resp.json()
        book_id = book["id"]
        assert book["copy_count"] == 0
        assert book["deleted_at"] is None

        # 2. Add copies
        resp = await client.post(f"/api/v1/books/{book_id}/copies", json={"quantity": 3})
        assert resp.status_code == 201
        added = resp.json()
        assert added["message"] == "3 copy/copies added successfully"
        codes = [c["copy_code"] for c in added["copies"]]
        assert codes == [f"BOOK-{book_id:03d}-{seq:03d}" for seq in (1, 2, 3)]
        assert all(c["status"] == "Available" for c in added["copies"])

        # 3. Borrow the first copy
        member = await new_member()
        copy_id = added["copies"][0]["id"]
        resp = await client.post("/api/v1/borrowings", json={
            "copy_id": copy_id,
            "member_id": member["id"],
        })
        assert resp.status_code == 201
        borrowing = resp.json()
        assert borrowing["returned_at"] is None
        assert borrowing["is_overdue"] is False

        resp = await client.get(f"/api/v1/books/{book_id}")
        details = resp.json()
        assert details["copy_count"] == 3
        assert details["available_copies"] == 2
        assert [c["status"] for c in details["copies"]] == ["Borrowed", "Available", "Available"]

        # 4. Delete is refused while the copy is out
        resp = await client.delete(f"/api/v1/books/{book_id}")
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Cannot delete book with active borrows"

        # 5. Return the copy
        resp = await client.post(f"/api/v1/borrowings/{borrowing['id']}/return")
        assert resp.status_code == 200
        assert resp.json()["returned_at"] is not None

        # 6. Delete now succeeds
        resp = await client.delete(f"/api/v1/books/{book_id}")
        assert resp.status_code == 204

        # 7. Book is gone from reads, history survives
        assert (await client.get(f"/api/v1/books/{book_id}")).status_code == 404
        assert (await client.delete(f"/api/v1/books/{book_id}")).status_code == 404

        resp = await client.get(f"/api/v1/copies/{copy_id}/history")
        assert resp.status_code == 200
        history = resp.json()
        assert history["book_title"] == "Dune"
        assert history["total_borrows"] == 1

        # 8. ISBN is free again
        resp = await client.post("/api/v1/books", json={"book_title": "Dune (reprint)", "isbn": "9780441013593"})
        assert resp.status_code == 201

    @pytest.mark.asyncio
    async def test_update_replaces_associations(self, client: AsyncClient, new_book):
        a1 = (await client.post("/api/v1/authors", json={"name": "First"})).json()
        a2 = (await client.post("/api/v1/authors", json={"name": "Second"})).json()
        book = await new_book(author_ids=[a1["id"]])

        resp = await client.put(f"/api/v1/books/{book['id']}", json={"author_ids": [a2["id"]]})
        assert resp.status_code == 200
        assert [a["name"] for a in resp.json()["authors"]] == ["Second"]

        resp = await client.put(f"/api/v1/books/{book['id']}", json={"description": "Now described"})
        assert [a["name"] for a in resp.json()["authors"]] == ["Second"]
        assert resp.json()["description"] == "Now described"

        resp = await client.put(f"/api/v1/books/{book['id']}", json={"author_ids": []})
        assert resp.json()["authors"] == []

    @pytest.mark.asyncio
    async def test_copy_codes_continue(self, client: AsyncClient, new_book):
        book = await new_book()
        await client.post(f"/api/v1/books/{book['id']}/copies", json={"quantity": 2})
        resp = await client.post(f"/api/v1/books/{book['id']}/copies", json={})
        assert resp.json()["message"] == "1 copy/copies added successfully"
        assert resp.json()["copies"][0]["copy_code"] == f"BOOK-{book['id']:03d}-003"

        resp = await client.get(f"/api/v1/books/{book['id']}/copies")
        assert resp.status_code == 200
        assert resp.json()["summary"] == {"total": 3, "available": 3, "borrowed": 0}


class TestBorrowingHistory:

    @pytest.mark.asyncio
    async def test_history_most_recent_first(self, client: AsyncClient, new_copy, new_member):
        book, copy = new_copy
        first = await new_member(member_name="First Reader")
        second = await new_member(member_name="Second Reader")

        b1 = (await client.post("/api/v1/borrowings", json={"copy_id": copy["id"], "member_id": first["id"]})).json()
        await client.post(f"/api/v1/borrowings/{b1['id']}/return")
        due = (datetime.now(timezone.utc) + timedelta(days=7)).isoformat()
        b2 = (await client.post("/api/v1/borrowings", json={
            "copy_id": copy["id"], "member_id": second["id"], "due_date": due,
        })).json()

        resp = await client.get(f"/api/v1/copies/{copy['id']}/history")
        assert resp.status_code == 200
        data = resp.json()
        assert data["copy_code"] == copy["copy_code"]
        assert data["book_id"] == book["id"]
        assert data["current_status"] == "Borrowed"
        assert data["total_borrows"] == 2
        assert [h["id"] for h in data["history"]] == [b2["id"], b1["id"]]
        assert [h["member_name"] for h in data["history"]] == ["Second Reader", "First Reader"]
        assert all(h["copy_code"] == copy["copy_code"] for h in data["history"])
        assert all(h["is_overdue"] is False for h in data["history"])

    @pytest.mark.asyncio
    async def test_empty_history(self, client: AsyncClient, new_copy):
        _, copy = new_copy
        data = (await client.get(f"/api/v1/copies/{copy['id']}/history")).json()
        assert data["history"] == []
        assert data["total_borrows"] == 0
        assert data["current_status"] == "Available"

    @pytest.mark.asyncio
    async def test_member_profile_counts(self, client: AsyncClient, new_copy, new_member):
        _, copy = new_copy
        member = await new_member()
        await client.post("/api/v1/borrowings", json={"copy_id": copy["id"], "member_id": member["id"]})

        resp = await client.get(f"/api/v1/members/{member['id']}")
        assert resp.status_code == 200
        profile = resp.json()
        assert profile["total_borrows"] == 1
        assert profile["active_borrows"] == 1
        assert profile["overdue_count"] == 0
