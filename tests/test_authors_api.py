from puntolector.models import Author, Book, Nationality


def test_create_author_returns_normalized_record(client):
    resp = client.post(
        "/api/authors",
        json={
            "name": "  Jorge Luis Borges ",
            "bio": "",
            "birth_date": "1899-08-24",
            "death_date": "1986-06-14",
            "photo_url": "   ",
        },
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Jorge Luis Borges"
    assert body["bio"] is None
    assert body["photo_url"] is None
    assert body["birth_date"] == "1899-08-24"
    assert body["death_date"] == "1986-06-14"
    assert body["nationality"] is None
    assert body["_count"] == {"books": 0}


def test_create_author_duplicate_name_is_case_insensitive(client):
    assert client.post("/api/authors", json={"name": "Jorge Luis Borges"}).status_code == 201
    resp = client.post("/api/authors", json={"name": "jorge luis borges"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "An author with this name already exists"}


def test_create_author_requires_name(client):
    resp = client.post("/api/authors", json={"name": "   "})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Author name is required"


def test_create_author_rejects_death_before_birth(client):
    resp = client.post(
        "/api/authors",
        json={"name": "Someone", "birth_date": "1950-01-02", "death_date": "1950-01-01"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Death date cannot be before birth date"


def test_create_author_accepts_same_day_birth_and_death(client):
    resp = client.post(
        "/api/authors",
        json={"name": "Someone", "birth_date": "1950-01-01", "death_date": "1950-01-01"},
    )
    assert resp.status_code == 201


def test_create_author_rejects_bad_date(client):
    resp = client.post("/api/authors", json={"name": "Someone", "birth_date": "not a date"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid birth date format"


def test_create_author_with_nationality(client, add):
    argentina = add(Nationality(name="Argentina", country_code="AR"))
    resp = client.post(
        "/api/authors", json={"name": "Julio Cortázar", "nationality_id": argentina.id}
    )
    assert resp.status_code == 201
    assert resp.json()["nationality"]["country_code"] == "AR"


def test_create_author_rejects_unknown_nationality(client):
    resp = client.post("/api/authors", json={"name": "Someone", "nationality_id": "nope"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid nationality selected"


def test_list_authors_sorted_with_book_counts(client, add):
    borges, allende = add(Author(name="Jorge Luis Borges"), Author(name="Isabel Allende"))
    add(Book(title="Ficciones", author="Jorge Luis Borges", author_id=borges.id))

    resp = client.get("/api/authors")
    assert resp.status_code == 200
    names = [(a["name"], a["_count"]["books"]) for a in resp.json()]
    assert names == [("Isabel Allende", 0), ("Jorge Luis Borges", 1)]


def test_update_author(client, add):
    author = add(Author(name="Gabriel Garcia Marquez"))
    resp = client.put(
        "/api/authors",
        json={"id": author.id, "name": "Gabriel García Márquez", "birth_date": "1927-03-06"},
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Gabriel García Márquez"
    assert resp.json()["birth_date"] == "1927-03-06"


def test_update_author_may_keep_its_own_name(client, add):
    author = add(Author(name="Rayuela Writer"))
    resp = client.put("/api/authors", json={"id": author.id, "name": "RAYUELA WRITER"})
    assert resp.status_code == 200


def test_update_author_conflicts_with_other_author(client, add):
    first, second = add(Author(name="Alpha"), Author(name="Beta"))
    resp = client.put("/api/authors", json={"id": second.id, "name": "alpha"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Another author with this name already exists"


def test_update_author_requires_id(client):
    resp = client.put("/api/authors", json={"name": "Nobody"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Author ID is required"


def test_update_missing_author_is_404(client):
    resp = client.put("/api/authors", json={"id": "missing", "name": "Nobody"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "Author not found"


def test_delete_author_without_books(client, add):
    author = add(Author(name="Deletable"))
    resp = client.delete("/api/authors", params={"id": author.id})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Author deleted successfully"}
    assert client.get("/api/authors").json() == []


def test_delete_author_with_books_is_rejected(client, add):
    author = add(Author(name="Prolific"))
    add(Book(title="A book", author_id=author.id))
    resp = client.delete("/api/authors", params={"id": author.id})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Cannot delete author: has associated books"


def test_delete_author_not_found_and_missing_id(client):
    assert client.delete("/api/authors", params={"id": "missing"}).status_code == 404
    resp = client.delete("/api/authors")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Author ID is required"


def test_malformed_body_is_reported_as_400(client):
    resp = client.post("/api/authors", json={"name": ["not", "a", "string"]})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_duplicate_check_folds_accented_letters(client):
    assert client.post("/api/authors", json={"name": "Ángel González"}).status_code == 201
    resp = client.post("/api/authors", json={"name": "ángel gonzález"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "An author with this name already exists"}
