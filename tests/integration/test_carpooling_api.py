"""Integration tests for the carpooling endpoints.

Walks the usual flow: guardians answer PRESENT, one offers a ride, another
child joins, seats run out, and a SICK answer cancels the ride.
"""

import pytest
from tests.conftest import auth_headers
from tests.factories import EventFactory, seed_team


async def _event_with_answers(client, db, present=("A", "B", "C", "D")):
    world = await seed_team(db)
    event = EventFactory.create(team_id=world.team.id)
    db.add(event)
    await db.commit()
    for key in present:
        response = await client.put(
            f"/api/events/{event.id}/attendance/{world.player(key).id}",
            json={"status": "PRESENT"},
            headers=auth_headers(world.guardian(key).id),
        )
        assert response.status_code == 200, response.text
    return world, event


async def _offer(client, world, event, key="A", **body):
    payload = {"seats_available": 2, "player_id": str(world.player(key).id)}
    payload.update(body)
    return await client.post(
        f"/api/carpooling/{event.id}/ride",
        json=payload,
        headers=auth_headers(world.guardian(key).id),
    )


async def _join(client, world, ride_id, key, seat_count=1):
    return await client.post(
        f"/api/carpooling/ride/{ride_id}/join",
        json={"player_id": str(world.player(key).id), "seat_count": seat_count},
        headers=auth_headers(world.guardian(key).id),
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_offer_join_and_run_out_of_seats(client, db_session):
    world, event = await _event_with_answers(client, db_session)

    offered = await _offer(client, world, event, departure_location="Church square")
    assert offered.status_code == 201, offered.text
    ride = offered.json()
    assert ride["seats_available"] == 2
    assert ride["seats_left"] == 2
    assert ride["driver_name"] == "Dad of Alex"
    [anchor] = ride["passengers"]
    assert anchor["passenger_id"] == str(world.player("A").id)
    assert anchor["is_anchor"] is True

    joined = await _join(client, world, ride["id"], "D")
    assert joined.status_code == 200, joined.text
    assert joined.json()["seat_count"] == 1

    full = await _join(client, world, ride["id"], "B", seat_count=2)
    assert full.status_code == 409
    assert full.json()["code"] == "RIDE_FULL"

    listed = await client.get(
        f"/api/carpooling/{event.id}", headers=auth_headers(world.coach.id)
    )
    [ride_view] = listed.json()
    assert ride_view["seats_left"] == 1
    assert {p["name"] for p in ride_view["passengers"]} == {"Alex", "Dylan"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sick_anchor_cancels_the_ride(client, db_session):
    world, event = await _event_with_answers(client, db_session)
    ride = (await _offer(client, world, event)).json()
    await _join(client, world, ride["id"], "D")

    response = await client.put(
        f"/api/events/{event.id}/attendance/{world.player('A').id}",
        json={"status": "SICK"},
        headers=auth_headers(world.guardian("A").id),
    )

    assert response.status_code == 200, response.text
    assert response.json()["cancelled_ride_ids"] == [ride["id"]]
    listed = await client.get(
        f"/api/carpooling/{event.id}", headers=auth_headers(world.coach.id)
    )
    assert listed.json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_wrong_person_kind_is_400_and_keeps_the_ride(client, db_session):
    world, event = await _event_with_answers(client, db_session, present=("A",))
    ride = (await _offer(client, world, event)).json()

    response = await client.put(
        f"/api/events/{event.id}/attendance/{world.player('A').id}",
        json={"status": "SICK", "person_kind": "USER"},
        headers=auth_headers(world.guardian("A").id),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"
    listed = await client.get(
        f"/api/carpooling/{event.id}", headers=auth_headers(world.coach.id)
    )
    assert [r["id"] for r in listed.json()] == [ride["id"]]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_event_view_flags_people_with_a_ride(client, db_session):
    world, event = await _event_with_answers(client, db_session)
    ride = (await _offer(client, world, event)).json()
    await _join(client, world, ride["id"], "C")

    response = await client.get(
        f"/api/events/{event.id}", headers=auth_headers(world.coach.id)
    )

    data = response.json()
    has_ride = {row["name"]: row["has_ride"] for row in data["attendance"]}
    assert has_ride == {"Alex": True, "Basile": False, "Chloe": True, "Dylan": False}
    assert len(data["rides"]) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_duplicate_offer_is_409(client, db_session):
    world, event = await _event_with_answers(client, db_session, present=("A",))
    await _offer(client, world, event)

    again = await _offer(client, world, event)

    assert again.status_code == 409
    assert again.json()["code"] == "DUPLICATE_RIDE"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_offer_for_absent_child_is_422(client, db_session):
    world, event = await _event_with_answers(client, db_session, present=())

    response = await _offer(client, world, event)

    assert response.status_code == 422
    assert response.json()["code"] == "NOT_ELIGIBLE"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_too_many_seats_requested_is_422(client, db_session):
    world, event = await _event_with_answers(client, db_session)
    ride = (await _offer(client, world, event)).json()

    response = await _join(client, world, ride["id"], "B", seat_count=3)

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_leave_is_204_even_when_not_on_the_ride(client, db_session):
    world, event = await _event_with_answers(client, db_session)
    ride = (await _offer(client, world, event)).json()
    await _join(client, world, ride["id"], "B")
    path = f"/api/carpooling/ride/{ride['id']}/passengers/{world.player('B').id}"
    headers = auth_headers(world.guardian("B").id)

    first = await client.delete(path, headers=headers)
    second = await client.delete(path, headers=headers)

    assert first.status_code == 204
    assert second.status_code == 204


@pytest.mark.asyncio
@pytest.mark.integration
async def test_only_driver_deletes_the_ride(client, db_session):
    world, event = await _event_with_answers(client, db_session)
    ride = (await _offer(client, world, event)).json()
    path = f"/api/carpooling/ride/{ride['id']}"

    forbidden = await client.delete(path, headers=auth_headers(world.guardian("B").id))
    deleted = await client.delete(path, headers=auth_headers(world.guardian("A").id))
    missing = await client.delete(path, headers=auth_headers(world.guardian("A").id))

    assert forbidden.status_code == 403
    assert deleted.status_code == 204
    assert missing.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_outsider_cannot_see_rides(client, db_session):
    world, event = await _event_with_answers(client, db_session, present=())

    response = await client.get(
        f"/api/carpooling/{event.id}", headers=auth_headers(world.outsider.id)
    )

    assert response.status_code == 403
