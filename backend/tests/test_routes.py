"""
YelpCamp Backend - Endpoint Tests
===================================

What:  End-to-end tests through the FastAPI app: sessions, guards,
       redirects, flash messages and the store.
How:   httpx AsyncClient over ASGITransport; the client keeps the signed
       session cookie between requests just like a browser.

Test Strategy:
    ✅ Scenarios A-E (anonymous create, invalid update, foreign delete,
       cascading delete, review create)
    ✅ Return-path capture across the login wall
    ✅ Guards run before the body is decoded; repeated refusals change nothing
    ✅ Method override, JSON and multipart bodies
    ✅ Error mapping: 400 validation, 303 not-found, 404 unknown route, 503 geocoder
"""

import uuid

import pytest

from app.config import settings
from app.exceptions import GeocodingError


def campground_form(**fields):
    form = {
        "campground[title]": "Misty Hollow",
        "campground[price]": "25",
        "campground[location]": "Boulder, Colorado",
        "campground[description]": "Quiet sites by the creek.",
    }
    form.update({f"campground[{k}]": v for k, v in fields.items()})
    return form


async def messages(client):
    """Drain flash notices by loading the index page."""
    response = await client.get("/campgrounds")
    assert response.status_code == 200
    return response.json()["messages"]


class TestScenarios:
    """The core end-to-end mutation scenarios."""

    @pytest.mark.asyncio
    async def test_a_anonymous_create_redirects_to_login(self, client, read_back):
        """No session → 303 /login, flash, nothing stored."""
        response = await client.post("/campgrounds", data=campground_form())

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert await read_back("list_campgrounds") == []
        assert (await messages(client))["error"] == ["You must be signed in first!"]

    @pytest.mark.asyncio
    async def test_b_owner_update_with_negative_price(self, client, login, owner, make_campground, read_back):
        """ValidationError → 400, stored campground unchanged."""
        cg = await make_campground(owner)
        await login("owner")

        response = await client.put(f"/campgrounds/{cg.id}", data=campground_form(price="-5"))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert '"campground.price"' in body["message"]
        stored = await read_back("get_campground", cg.id)
        assert stored.price == 25.0

    @pytest.mark.asyncio
    async def test_c_stranger_delete_denied(self, client, login, owner, stranger, make_campground, read_back):
        """AuthorizationDenied → 303 back to the campground, still present."""
        cg = await make_campground(owner)
        await login("stranger")

        response = await client.delete(f"/campgrounds/{cg.id}")

        assert response.status_code == 303
        assert response.headers["location"] == f"/campgrounds/{cg.id}"
        assert await read_back("get_campground", cg.id) is not None
        assert (await messages(client))["error"] == ["You are not authorized to do that!"]

    @pytest.mark.asyncio
    async def test_d_owner_delete_removes_reviews(
        self, client, login, owner, stranger, make_campground, make_review, read_back
    ):
        """Campground with two reviews → all three documents gone."""
        cg = await make_campground(owner)
        first = await make_review(cg, stranger)
        second = await make_review(cg, owner, rating=2)
        await login("owner")

        response = await client.delete(f"/campgrounds/{cg.id}")

        assert response.status_code == 303
        assert response.headers["location"] == "/campgrounds"
        assert await read_back("get_campground", cg.id) is None
        assert await read_back("get_review", first.id) is None
        assert await read_back("get_review", second.id) is None

    @pytest.mark.asyncio
    async def test_e_review_appended(self, client, login, owner, stranger, make_campground, read_back):
        """A new review grows the campground's list by exactly one."""
        cg = await make_campground(owner)
        await login("stranger")

        response = await client.post(
            f"/campgrounds/{cg.id}/reviews",
            data={"review[body]": "Great spot", "review[rating]": "5"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == f"/campgrounds/{cg.id}"
        stored = await read_back("get_campground", cg.id)
        assert len(stored.reviews) == 1
        review = await read_back("get_review", stored.reviews[0])
        assert review.body == "Great spot"
        assert review.rating == 5
        assert review.author_id == stranger.id


class TestCampgroundPages:
    """Read endpoints and the full create flow."""

    @pytest.mark.asyncio
    async def test_home_redirects(self, client):
        """/ sends visitors to the index."""
        response = await client.get("/")
        assert response.status_code == 303
        assert response.headers["location"] == "/campgrounds"

    @pytest.mark.asyncio
    async def test_index_lists_campgrounds_with_map(self, client, owner, make_campground):
        """Each campground appears in the list and as a map feature."""
        cg = await make_campground(owner)
        body = (await client.get("/campgrounds")).json()

        assert [c["id"] for c in body["campgrounds"]] == [str(cg.id)]
        assert body["campgrounds"][0]["author"]["username"] == "owner"
        assert body["map"]["type"] == "FeatureCollection"
        assert body["map"]["features"][0]["properties"]["id"] == str(cg.id)
        assert body["current_user"] is None

    @pytest.mark.asyncio
    async def test_create_then_show(self, client, login, owner, geocoder):
        """POST redirects to the new page, which shows the success notice."""
        await login("owner")
        await messages(client)

        response = await client.post("/campgrounds", data=campground_form())
        assert response.status_code == 303
        location = response.headers["location"]
        assert location.startswith("/campgrounds/")

        page = (await client.get(location)).json()
        assert page["campground"]["title"] == "Misty Hollow"
        assert page["campground"]["author"]["username"] == "owner"
        assert page["campground"]["geometry"]["type"] == "Point"
        assert page["messages"]["success"] == ["Successfully made a new campground!"]
        assert page["current_user"]["username"] == "owner"
        assert geocoder.queries == ["Boulder, Colorado"]

    @pytest.mark.asyncio
    async def test_create_with_json_body(self, client, login, owner, read_back):
        """JSON bodies follow the same schema as forms."""
        await login("owner")
        response = await client.post(
            "/campgrounds",
            json={"campground": {"title": "Elk Flats", "price": 30, "location": "Moab, Utah"}},
        )
        assert response.status_code == 303
        titles = [c.title for c in await read_back("list_campgrounds")]
        assert titles == ["Elk Flats"]

    @pytest.mark.asyncio
    async def test_create_with_image_upload(self, client, login, owner, sample_image_bytes):
        """Uploaded images are served back from /images/."""
        await login("owner")
        response = await client.post(
            "/campgrounds",
            data=campground_form(),
            files=[("image", ("tent.jpg", sample_image_bytes, "image/jpeg"))],
        )
        assert response.status_code == 303

        page = (await client.get(response.headers["location"])).json()
        image = page["campground"]["images"][0]
        assert image["thumbnail"] == image["url"]

        served = await client.get(image["url"])
        assert served.status_code == 200
        assert served.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_show_populates_reviews(self, client, owner, stranger, make_campground, make_review):
        """Reviews on the detail page carry their author's username."""
        cg = await make_campground(owner)
        await make_review(cg, stranger, body="Loved it", rating=4)

        page = (await client.get(f"/campgrounds/{cg.id}")).json()

        reviews = page["campground"]["reviews"]
        assert len(reviews) == 1
        assert reviews[0]["body"] == "Loved it"
        assert reviews[0]["author"]["username"] == "stranger"

    @pytest.mark.asyncio
    async def test_show_missing_redirects(self, client):
        """Unknown id → flash + 303 /campgrounds, not a 404."""
        response = await client.get(f"/campgrounds/{uuid.uuid4()}")
        assert response.status_code == 303
        assert response.headers["location"] == "/campgrounds"
        assert (await messages(client))["error"] == ["Cannot find that campground!"]

    @pytest.mark.asyncio
    async def test_edit_form_owner_only(self, client, login, owner, stranger, make_campground):
        """The edit form opens for the author and bounces anyone else."""
        cg = await make_campground(owner)

        await login("stranger")
        denied = await client.get(f"/campgrounds/{cg.id}/edit")
        assert denied.status_code == 303
        assert denied.headers["location"] == f"/campgrounds/{cg.id}"

        await client.get("/logout")
        await login("owner")
        allowed = await client.get(f"/campgrounds/{cg.id}/edit")
        assert allowed.status_code == 200
        assert allowed.json()["campground"]["id"] == str(cg.id)

    @pytest.mark.asyncio
    async def test_method_override_put(self, client, login, owner, make_campground, read_back):
        """HTML forms reach PUT through POST ?_method=PUT."""
        cg = await make_campground(owner)
        await login("owner")

        response = await client.post(
            f"/campgrounds/{cg.id}?_method=PUT", data=campground_form(title="Elk Flats")
        )

        assert response.status_code == 303
        assert (await read_back("get_campground", cg.id)).title == "Elk Flats"

    @pytest.mark.asyncio
    async def test_geocoder_outage_is_503(self, client, login, owner, geocoder):
        """A failed lookup surfaces as 503 with Retry-After."""
        geocoder.error = GeocodingError(retry_after=30)
        await login("owner")

        response = await client.post("/campgrounds", data=campground_form())

        assert response.status_code == 503
        assert response.headers["retry-after"] == "30"


class TestReviewRoutes:
    """Review delete through HTTP."""

    @pytest.mark.asyncio
    async def test_author_deletes_review(self, client, login, owner, stranger, make_campground, make_review, read_back):
        """The id disappears from the campground's list."""
        cg = await make_campground(owner)
        review = await make_review(cg, stranger)
        await login("stranger")

        response = await client.post(f"/campgrounds/{cg.id}/reviews/{review.id}?_method=DELETE")

        assert response.status_code == 303
        assert await read_back("get_review", review.id) is None
        assert (await read_back("get_campground", cg.id)).reviews == []

    @pytest.mark.asyncio
    async def test_invalid_review_is_400(self, client, login, owner, make_campground, read_back):
        """Markup in the body is rejected and nothing is appended."""
        cg = await make_campground(owner)
        await login("owner")

        response = await client.post(
            f"/campgrounds/{cg.id}/reviews",
            data={"review[body]": "<script>x</script>", "review[rating]": "5"},
        )

        assert response.status_code == 400
        assert "must not include HTML!" in response.json()["message"]
        assert (await read_back("get_campground", cg.id)).reviews == []

    @pytest.mark.asyncio
    async def test_delete_with_uppercase_id(
        self, client, login, owner, stranger, make_campground, make_review, read_back
    ):
        """A review addressed by an uppercased id is also pulled from its parent."""
        cg = await make_campground(owner)
        kept = await make_review(cg, owner)
        review = await make_review(cg, stranger, body="Too loud", rating=2)
        await login("stranger")

        response = await client.post(
            f"/campgrounds/{cg.id}/reviews/{str(review.id).upper()}?_method=DELETE"
        )

        assert response.status_code == 303
        assert await read_back("get_review", review.id) is None
        assert (await read_back("get_campground", cg.id)).reviews == [str(kept.id)]


class TestGuardOrder:
    """Guards answer before the request body is decoded or validated."""

    @pytest.mark.asyncio
    async def test_anonymous_create_with_broken_json(self, client, read_back):
        """Unparseable JSON from an anonymous visitor still goes to /login."""
        response = await client.post(
            "/campgrounds",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert await read_back("list_campgrounds") == []

    @pytest.mark.asyncio
    async def test_stranger_update_with_broken_json(self, client, login, owner, stranger, make_campground):
        """A non-owner is refused before their body is looked at."""
        cg = await make_campground(owner)
        await login("stranger")

        response = await client.put(
            f"/campgrounds/{cg.id}",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == f"/campgrounds/{cg.id}"

    @pytest.mark.asyncio
    async def test_anonymous_review_with_broken_json(self, client, owner, make_campground, read_back):
        cg = await make_campground(owner)

        response = await client.post(
            f"/campgrounds/{cg.id}/reviews",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert (await read_back("get_campground", cg.id)).reviews == []

    @pytest.mark.asyncio
    async def test_owner_with_broken_json_is_400(self, client, login, owner):
        """Once the guards pass, a broken body is a validation error."""
        await login("owner")

        response = await client.post(
            "/campgrounds",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Request body is not valid JSON."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PUT", "DELETE"])
    async def test_repeated_refusal_changes_nothing(
        self, client, login, owner, stranger, make_campground, make_review, read_back, method
    ):
        """A non-owner repeating the same request is refused the same way each time."""
        cg = await make_campground(owner)
        review = await make_review(cg, owner)
        await login("stranger")
        await messages(client)

        def snapshot(stored):
            return (
                stored.title,
                stored.price,
                stored.location,
                stored.description,
                stored.images,
                stored.geometry,
                stored.reviews,
            )

        before = snapshot(await read_back("get_campground", cg.id))

        for _ in range(2):
            response = await client.post(
                f"/campgrounds/{cg.id}?_method={method}",
                data=campground_form(title="Hijacked", price="1"),
            )
            assert response.status_code == 303
            assert response.headers["location"] == f"/campgrounds/{cg.id}"
            assert (await messages(client))["error"] == ["You are not authorized to do that!"]
            assert snapshot(await read_back("get_campground", cg.id)) == before

        assert before[-1] == [str(review.id)]


class TestAccounts:
    """Registration, login, logout and the return path."""

    @pytest.mark.asyncio
    async def test_register_logs_in(self, client):
        """A new account is signed in straight away."""
        response = await client.post(
            "/register",
            data={"username": "camper", "email": "camper@example.com", "password": "s3cret"},
        )
        assert response.status_code == 303
        page = (await client.get("/campgrounds")).json()
        assert page["current_user"]["username"] == "camper"
        assert page["messages"]["success"] == ["Welcome to Yelp Camp!"]

    @pytest.mark.asyncio
    async def test_register_duplicate_username(self, client, owner):
        """Taken usernames bounce back to /register with a notice."""
        response = await client.post(
            "/register",
            data={"username": "owner", "email": "new@example.com", "password": "x"},
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/register"
        assert (await messages(client))["error"] == [
            "A user with the given username is already registered"
        ]

    @pytest.mark.asyncio
    async def test_bad_password(self, client, login, owner):
        """Wrong credentials → /login with a notice and no session."""
        response = await login("owner", "wrong")
        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        page = (await client.get("/campgrounds")).json()
        assert page["current_user"] is None
        assert page["messages"]["error"] == ["Password or username is incorrect"]

    @pytest.mark.asyncio
    async def test_login_returns_to_original_page(self, client, login, owner):
        """A GET bounced by the login wall is resumed after login."""
        bounced = await client.get("/campgrounds/new")
        assert bounced.headers["location"] == "/login"

        response = await login("owner")

        assert response.status_code == 303
        assert response.headers["location"] == "/campgrounds/new"
        form = await client.get("/campgrounds/new")
        assert form.status_code == 200

    @pytest.mark.asyncio
    async def test_post_is_not_remembered(self, client, login, owner):
        """Only GETs are remembered; a bounced POST resumes at the index."""
        await client.post("/campgrounds", data=campground_form())
        response = await login("owner")
        assert response.headers["location"] == "/campgrounds"

    @pytest.mark.asyncio
    async def test_logout(self, client, login, owner):
        """Logging out clears the principal."""
        await login("owner")
        response = await client.get("/logout")
        assert response.status_code == 303
        page = (await client.get("/campgrounds")).json()
        assert page["current_user"] is None
        assert "Goodbye!" in page["messages"]["success"]


class TestErrorsAndHealth:
    """Cross-cutting responses."""

    @pytest.mark.asyncio
    async def test_unknown_route_404(self, client):
        """Unmatched paths get the JSON not-found page."""
        response = await client.get("/nowhere")
        assert response.status_code == 404
        assert response.json()["message"] == "Page Not Found!"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        """Every response carries X-Request-ID."""
        response = await client.get("/campgrounds", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"

    @pytest.mark.asyncio
    async def test_health(self, client):
        """Database reachable and geocoder usable → healthy."""
        body = (await client.get("/health")).json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["geocoder"] == "available"

    @pytest.mark.asyncio
    async def test_rate_limit_applies_to_mutations(self, client, monkeypatch):
        """Writes beyond the limit get 429; reads are never limited."""
        monkeypatch.setattr(settings, "rate_limit_requests", 2)

        statuses = [
            (await client.post("/campgrounds", data=campground_form())).status_code
            for _ in range(3)
        ]

        assert statuses[:2] == [303, 303]
        assert statuses[2] == 429
        assert (await client.get("/campgrounds")).status_code == 200
