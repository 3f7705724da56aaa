import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient

from main import create_app
from yoon.api.routes_trips import book_trip
from yoon.models.schemas import BookingCreate
from yoon.storage.repository import InMemoryRepository

from conftest import RecordingNotifier


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(notifier):
    app = create_app(repository=InMemoryRepository(), notifier=notifier)
    return TestClient(app)


def _sign_up(client, name: str) -> dict:
    resp = client.post(
        "/auth/signup",
        json={
            "name": name,
            "email": f"{name.lower()}@example.com",
            "phone": "+221770000000",
            "password": "secret123",
        },
    )
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def _publish(client, headers, seats=3, price=2500) -> dict:
    resp = client.post(
        "/trips",
        headers=headers,
        json={
            "departure": "Dakar",
            "destination": "Thiès",
            "date": "2025-03-01",
            "time": "08:30",
            "price": price,
            "seats": seats,
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["service"] == "Yoon"


def test_protected_routes_require_auth(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/bookings/mine").status_code == 401
    assert client.post("/trips", json={}).status_code in (400, 401)
    resp = client.post("/trips/t1/bookings", json={"seats": 1})
    assert resp.status_code == 401
    assert resp.json()["error"] == "NotAuthenticatedError"


def test_sign_in_flow(client):
    headers = _sign_up(client, "Fatou")

    me = client.get("/auth/me", headers=headers).json()
    assert me["name"] == "Fatou"
    assert me["verified"] is False

    bad = client.post("/auth/signin", json={"email": "fatou@example.com", "password": "nope"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Email ou mot de passe incorrect"

    assert client.post("/auth/signout", headers=headers).status_code == 204
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_booking_flow_over_http(client, notifier):
    driver = _sign_up(client, "Moussa")
    alice = _sign_up(client, "Alice")
    bob = _sign_up(client, "Bob")
    client.put("/auth/me/push-token", headers=driver, json={"push_token": "ExponentPushToken[d]"})
    trip = _publish(client, driver, seats=3, price=2500)
    trip_id = trip["trip_id"]

    resp = client.post(f"/trips/{trip_id}/bookings", headers=alice, json={"seats": 2})
    assert resp.status_code == 201
    booking = resp.json()
    assert booking["total_price"] == 5000
    assert client.get(f"/trips/{trip_id}").json()["available_seats"] == 1
    assert notifier.sent[0]["token"] == "ExponentPushToken[d]"

    dup = client.post(f"/trips/{trip_id}/bookings", headers=alice, json={"seats": 1})
    assert dup.status_code == 409
    assert dup.json()["error"] == "DuplicateBookingError"

    own = client.post(f"/trips/{trip_id}/bookings", headers=driver, json={"seats": 1})
    assert own.status_code == 403
    assert own.json()["error"] == "SelfBookingError"

    too_many = client.post(f"/trips/{trip_id}/bookings", headers=bob, json={"seats": "2"})
    assert too_many.status_code == 400
    assert too_many.json()["error"] == "InvalidSeatCountError"

    assert client.post(f"/trips/{trip_id}/bookings", headers=bob, json={"seats": 1}).status_code == 201

    aggregates = client.get(f"/trips/{trip_id}/aggregates").json()
    assert aggregates == {"passenger_count": 2, "total_seats_booked": 3, "total_revenue": 7500}

    passengers = client.get(f"/trips/{trip_id}/passengers", headers=driver).json()
    assert [p["passenger_name"] for p in passengers["passengers"]] == ["Alice", "Bob"]
    assert client.get(f"/trips/{trip_id}/passengers", headers=alice).status_code == 403

    mine = client.get("/bookings/mine", headers=alice).json()["bookings"]
    assert mine[0]["trip"]["destination"] == "Thiès"

    share = client.get(f"/bookings/{booking['booking_id']}/share", headers=alice).json()
    assert "Prix: 5000 CFA" in share["message"]

    assert client.delete(f"/bookings/{booking['booking_id']}", headers=bob).status_code == 403
    assert client.delete(f"/bookings/{booking['booking_id']}", headers=alice).status_code == 204
    assert client.get(f"/trips/{trip_id}").json()["available_seats"] == 2
    assert client.get("/bookings/mine", headers=alice).json()["bookings"] == []


def test_search_and_my_trips(client):
    driver = _sign_up(client, "Moussa")
    other = _sign_up(client, "Awa")
    _publish(client, driver)
    _publish(client, other)

    assert len(client.get("/trips").json()["trips"]) == 2
    assert len(client.get("/trips", params={"departure": "dak"}).json()["trips"]) == 2
    assert client.get("/trips", params={"destination": "touba"}).json()["trips"] == []
    assert len(client.get("/trips/mine", headers=driver).json()["trips"]) == 1


def test_publish_validation_message(client):
    driver = _sign_up(client, "Moussa")

    resp = client.post(
        "/trips",
        headers=driver,
        json={"departure": "Dakar", "destination": "Thiès", "date": "2025-03-01",
              "time": "08:30", "price": 1000, "seats": 12},
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Le nombre de places doit être entre 1 et 8"


def test_delete_trip_over_http(client):
    driver = _sign_up(client, "Moussa")
    alice = _sign_up(client, "Alice")
    trip_id = _publish(client, driver)["trip_id"]

    assert client.delete(f"/trips/{trip_id}", headers=alice).status_code == 403
    assert client.delete(f"/trips/{trip_id}", headers=driver).status_code == 204
    assert client.get(f"/trips/{trip_id}").status_code == 404


@pytest.mark.parametrize("seats", [True, 2.5, "1.5", None])
def test_non_integer_seat_counts_are_rejected(client, seats):
    driver = _sign_up(client, "Moussa")
    alice = _sign_up(client, "Alice")
    trip_id = _publish(client, driver)["trip_id"]

    resp = client.post(f"/trips/{trip_id}/bookings", headers=alice, json={"seats": seats})

    assert resp.status_code == 400
    assert resp.json() == {"detail": "Nombre de places invalide", "error": "InvalidSeatCountError"}
    assert client.get(f"/trips/{trip_id}").json()["available_seats"] == 3


def test_booking_route_defers_driver_notification(repository, make_user, make_trip, service_for):
    trip = make_trip(make_user("driver", push_token="ExponentPushToken[d]"))
    notifier = RecordingNotifier()
    tasks = BackgroundTasks()

    booking = book_trip(
        trip.trip_id,
        BookingCreate(seats=1),
        tasks,
        service=service_for(make_user("alice"), notifier=notifier),
    )

    assert booking.seats_booked == 1
    assert notifier.sent == []
    assert len(tasks.tasks) == 1

    task = tasks.tasks[0]
    task.func(*task.args, **task.kwargs)
    assert notifier.sent[0]["token"] == "ExponentPushToken[d]"


def test_failing_notifier_does_not_fail_booking_over_http():
    client = TestClient(
        create_app(
            repository=InMemoryRepository(),
            notifier=RecordingNotifier(fail_with=RuntimeError("expo down")),
        )
    )
    driver = _sign_up(client, "Moussa")
    alice = _sign_up(client, "Alice")
    client.put("/auth/me/push-token", headers=driver, json={"push_token": "ExponentPushToken[d]"})
    trip_id = _publish(client, driver)["trip_id"]

    resp = client.post(f"/trips/{trip_id}/bookings", headers=alice, json={"seats": 1})

    assert resp.status_code == 201
    assert client.get(f"/trips/{trip_id}").json()["available_seats"] == 2
