"""
Pass (club transfer) tests
"""
from datetime import date

from federation import models, passes


class TestCreatePass:
    def test_create_moves_person(self, client, admin_headers, club_factory, person_factory, db_session):
        origin = club_factory("Club Atletico Ledesma")
        dest = club_factory("Gimnasia de Jujuy")
        person = person_factory(club=origin)

        res = client.post(
            "/passes",
            json={
                "person_id": person.id,
                "origin_club_id": origin.id,
                "destination_club_name": "  Gimnasia de Jujuy ",
                "pass_date": "2025-06-01",
                "reason": "Season loan",
            },
            headers=admin_headers,
        )
        assert res.status_code == 201
        data = res.json()
        assert data["authorization"] == "PENDING"
        assert data["display_state"] == "PENDING"
        assert data["badge"] == "badge bg-warning"
        assert data["destination_club_id"] == dest.id
        assert data["origin_club_name"] == "Club Atletico Ledesma"
        assert data["affiliate_snapshot"]["category"] == "Sub-21"

        db_session.refresh(person)
        assert person.club_id == dest.id

    def test_first_club_has_no_origin(self, client, admin_headers, club_factory, person_factory):
        dest = club_factory("Talleres")
        person = person_factory()
        res = client.post("/passes", json={"person_id": person.id, "destination_club_id": dest.id}, headers=admin_headers)
        assert res.status_code == 201
        assert res.json()["origin_club_id"] is None
        assert res.json()["pass_date"] == "2025-06-15"

    def test_destination_required(self, client, admin_headers, person_factory):
        person = person_factory()
        res = client.post("/passes", json={"person_id": person.id}, headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["detail"] == "Destination club is required"

    def test_unknown_clubs(self, client, admin_headers, club_factory, person_factory):
        dest = club_factory("Talleres")
        person = person_factory()

        res = client.post(
            "/passes", json={"person_id": person.id, "destination_club_name": "Nowhere FC"}, headers=admin_headers
        )
        assert res.status_code == 400

        res = client.post(
            "/passes",
            json={"person_id": person.id, "destination_club_id": dest.id, "origin_club_name": "Ghost"},
            headers=admin_headers,
        )
        assert res.status_code == 400

    def test_same_club_rejected(self, client, admin_headers, club_factory, person_factory):
        club = club_factory("Talleres")
        person = person_factory(club=club)
        res = client.post(
            "/passes",
            json={"person_id": person.id, "origin_club_id": club.id, "destination_club_id": club.id},
            headers=admin_headers,
        )
        assert res.status_code == 400
        assert res.json()["detail"] == "Origin and destination clubs must differ"

    def test_unknown_person(self, client, admin_headers, club_factory):
        dest = club_factory("Talleres")
        res = client.post("/passes", json={"person_id": 404, "destination_club_id": dest.id}, headers=admin_headers)
        assert res.status_code == 404


class TestAuthorization:
    def test_authorize_keeps_observations_when_omitted(self, client, admin_headers, club_factory, person_factory):
        dest = club_factory("Talleres")
        person = person_factory()
        pid = client.post(
            "/passes",
            json={"person_id": person.id, "destination_club_id": dest.id, "observations": "Docs pending"},
            headers=admin_headers,
        ).json()["id"]

        res = client.put(f"/passes/{pid}/authorization", json={"authorization": "AUTHORIZED"}, headers=admin_headers)
        assert res.status_code == 200
        data = res.json()
        assert data["authorization"] == "AUTHORIZED"
        assert data["display_state"] == "ACTIVE"
        assert data["observations"] == "Docs pending"

        res = client.put(
            f"/passes/{pid}/authorization",
            json={"authorization": "REJECTED", "observations": "Fee unpaid"},
            headers=admin_headers,
        )
        assert res.json()["display_state"] == "REJECTED"
        assert res.json()["observations"] == "Fee unpaid"

    def test_invalid_value(self, client, admin_headers):
        res = client.put("/passes/1/authorization", json={"authorization": "MAYBE"}, headers=admin_headers)
        assert res.status_code == 422

    def test_missing_pass(self, client, admin_headers):
        res = client.put("/passes/77/authorization", json={"authorization": "PENDING"}, headers=admin_headers)
        assert res.status_code == 404


class TestListing:
    def _pass(self, db_session, person, origin, dest, day, auth="AUTHORIZED"):
        p = models.Pass(
            person_id=person.id,
            origin_club_id=origin.id if origin else None,
            origin_club_name=origin.name if origin else None,
            destination_club_id=dest.id,
            destination_club_name=dest.name,
            pass_date=day,
            authorization=auth,
        )
        db_session.add(p)
        db_session.commit()
        return p

    def test_by_club_direction(self, client, staff_headers, club_factory, person_factory, db_session):
        a = club_factory("A")
        b = club_factory("B")
        c = club_factory("C")
        person = person_factory()
        self._pass(db_session, person, None, a, date(2023, 1, 1))
        self._pass(db_session, person, a, b, date(2024, 1, 1))
        self._pass(db_session, person, b, c, date(2025, 1, 1), auth="PENDING")

        def ids(direction):
            res = client.get(f"/passes/club/{b.id}", params={"direction": direction}, headers=staff_headers)
            assert res.status_code == 200
            return [p["pass_date"] for p in res.json()]

        assert ids("origin") == ["2025-01-01"]
        assert ids("destination") == ["2024-01-01"]
        assert ids("all") == ["2025-01-01", "2024-01-01"]

        res = client.get("/passes", params={"authorization": "PENDING"}, headers=staff_headers)
        assert [p["destination_club_name"] for p in res.json()] == ["C"]

    def test_by_person_newest_first(self, client, staff_headers, club_factory, person_factory, db_session):
        a = club_factory("A")
        b = club_factory("B")
        person = person_factory()
        self._pass(db_session, person, None, a, date(2022, 5, 1))
        self._pass(db_session, person, a, b, date(2024, 5, 1))

        res = client.get(f"/passes/person/{person.id}", headers=staff_headers)
        assert [p["pass_date"] for p in res.json()] == ["2024-05-01", "2022-05-01"]

    def test_unknown_club(self, client, staff_headers):
        assert client.get("/passes/club/99", headers=staff_headers).status_code == 404


class TestAutomaticPass:
    def test_club_change_from_person_form(self, client, admin_headers, club_factory, person_factory, db_session):
        a = club_factory("A")
        b = club_factory("B")
        person = person_factory(club=a)

        res = client.put(f"/persons/{person.id}", json={"club_id": b.id}, headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["club_name"] == "B"

        rows = db_session.query(models.Pass).filter(models.Pass.person_id == person.id).all()
        assert len(rows) == 1
        assert rows[0].authorization == "AUTHORIZED"
        assert rows[0].origin_club_id == a.id
        assert rows[0].pass_date == date(2025, 6, 15)

    def test_same_day_is_deduplicated(self, club_factory, person_factory, db_session):
        a = club_factory("A")
        b = club_factory("B")
        person = person_factory(club=a)
        day = date(2025, 6, 15)

        first = passes.register_automatic_pass(db_session, person, a, b, today=day)
        db_session.commit()
        second = passes.register_automatic_pass(db_session, person, a, b, today=day)

        assert second.id == first.id
        assert db_session.query(models.Pass).count() == 1
