"""
Integration tests for creating related records from belongs-to fields.

End-to-end flows through the Forms API:
- New and edit fish forms creating their owner inline
- Comment forms creating a polymorphic Post inline
- Course link forms creating their course inline
- Lookup list limit truncation with the "more records" sentinel
- Fields that don't allow creation
"""

import pytest

from panel.src.models import Comment, Course, CourseLink, Fish, Post, User
from panel.src.resources import ResourceType, attribute, belongs_to, get_resource


NEW_USER = {
    "email": "john@example.com",
    "first_name": "John",
    "last_name": "Smith",
    "password": "password",
    "password_confirmation": "password",
}


def _open_form(client, resource, record_id=None):
    payload = {"resource": resource}
    if record_id:
        payload["record_id"] = record_id
    response = client.post("/api/forms", json=payload)
    assert response.status_code == 201
    return response.json()


def _create_inline(client, form_id, field, fields, target_type=None):
    response = client.post(
        f"/api/forms/{form_id}/fields/{field}/creations",
        json={"target_type": target_type},
    )
    assert response.status_code == 201
    context = response.json()
    return client.post(
        f"/api/forms/{form_id}/creations/{context['guid']}/submit",
        json={"fields": fields},
    )


class TestFishOwner:
    """Creating a fish's user from the fish form."""

    def test_new_fish_with_new_user(self, test_client, test_db_session):
        form = _open_form(test_client, "fish")
        test_client.patch(f"/api/forms/{form['guid']}/values", json={"values": {"name": "Nemo"}})

        response = _create_inline(test_client, form["guid"], "user", NEW_USER)
        assert response.status_code == 200
        result = response.json()
        assert result["record"]["label"] == "John Smith"
        assert result["form"]["values"] == {"name": "Nemo"}
        assert result["form"]["fields"]["user"]["record_id"] == result["record"]["id"]
        assert result["form"]["fields"]["user"]["state"] == "selected"

        response = test_client.post(f"/api/forms/{form['guid']}/submit")
        assert response.status_code == 200
        submitted = response.json()
        assert submitted["created"] is True
        assert submitted["label"] == "Nemo"

        fish = test_db_session.query(Fish).one()
        assert fish.user.email == "john@example.com"

    def test_edit_fish_with_new_user(self, test_client, test_db_session, sample_user, sample_fish):
        owner = sample_user(first_name="Jane", last_name="Doe")
        fish = sample_fish(name="Nemo", user=owner)

        form = _open_form(test_client, "fish", fish.guid)
        assert form["values"] == {"name": "Nemo"}
        assert form["fields"]["user"]["label"] == "Jane Doe"

        response = _create_inline(test_client, form["guid"], "user", NEW_USER)
        assert response.status_code == 200

        response = test_client.post(f"/api/forms/{form['guid']}/submit")
        assert response.status_code == 200
        assert response.json()["created"] is False

        test_db_session.expire_all()
        assert test_db_session.query(Fish).one().user.email == "john@example.com"
        assert test_db_session.query(User).count() == 2

    def test_invalid_user_keeps_context_open(self, test_client, test_db_session):
        form = _open_form(test_client, "fish")

        response = _create_inline(test_client, form["guid"], "user", {**NEW_USER, "email": "nope"})

        assert response.status_code == 422
        assert response.json()["errors"] == {"email": ["Email is not a valid address"]}
        assert test_db_session.query(User).count() == 0

        state = test_client.get(f"/api/forms/{form['guid']}").json()
        assert state["fields"]["user"]["state"] == "validation_failed"
        assert state["creations"][0]["status"] == "open"
        assert state["creations"][0]["errors"] == {"email": ["Email is not a valid address"]}

    def test_duplicate_email(self, test_client, sample_user):
        sample_user(email="john@example.com")
        form = _open_form(test_client, "fish")

        response = _create_inline(test_client, form["guid"], "user", NEW_USER)

        assert response.status_code == 422
        assert response.json()["errors"] == {"email": ["has already been taken"]}


class TestCommentCommentable:
    """Creating a polymorphic commentable from the comment form."""

    def test_new_comment_with_new_post(self, test_client, test_db_session):
        form = _open_form(test_client, "comments")
        assert form["fields"]["commentable"]["state"] == "awaiting_target_type"
        test_client.patch(f"/api/forms/{form['guid']}/values", json={"values": {"body": "Test comment"}})

        response = test_client.put(
            f"/api/forms/{form['guid']}/fields/commentable/type",
            json={"target_type": "post"},
        )
        assert response.status_code == 200

        view = test_client.get(f"/api/forms/{form['guid']}/fields/commentable").json()
        assert view["create_label"] == "Create new post"

        response = _create_inline(test_client, form["guid"], "commentable", {"name": "Test post"})
        assert response.status_code == 200
        assert response.json()["record"]["target_type"] == "post"

        response = test_client.post(f"/api/forms/{form['guid']}/submit")
        assert response.status_code == 200

        comment = test_db_session.query(Comment).one()
        post = test_db_session.query(Post).one()
        assert comment.body == "Test comment"
        assert comment.commentable_type == "post"
        assert comment.commentable_id == post.id

    def test_edit_comment_switching_type(self, test_client, test_db_session, sample_project, sample_comment):
        project = sample_project()
        comment = sample_comment(commentable=project)

        form = _open_form(test_client, "comments", comment.guid)
        assert form["fields"]["commentable"]["target_type"] == "project"
        assert form["fields"]["commentable"]["record_id"] == project.guid

        response = test_client.put(
            f"/api/forms/{form['guid']}/fields/commentable/type",
            json={"target_type": "post"},
        )
        assert response.json()["fields"]["commentable"]["record_id"] is None

        response = _create_inline(test_client, form["guid"], "commentable", {"name": "Test post"})
        assert response.status_code == 200
        assert test_client.post(f"/api/forms/{form['guid']}/submit").status_code == 200

        test_db_session.expire_all()
        updated = test_db_session.query(Comment).one()
        assert updated.commentable_type == "post"
        assert updated.commentable.name == "Test post"

    def test_switching_type_drops_open_creation(self, test_client, test_db_session):
        """Test a creation opened for the old type cannot select into the new type."""
        form = _open_form(test_client, "comments")
        test_client.put(
            f"/api/forms/{form['guid']}/fields/commentable/type", json={"target_type": "post"}
        )
        context = test_client.post(
            f"/api/forms/{form['guid']}/fields/commentable/creations", json={}
        ).json()

        test_client.put(
            f"/api/forms/{form['guid']}/fields/commentable/type", json={"target_type": "project"}
        )
        response = test_client.post(
            f"/api/forms/{form['guid']}/creations/{context['guid']}/submit",
            json={"fields": {"name": "Stale post"}},
        )

        assert response.status_code == 404
        assert test_db_session.query(Post).count() == 0
        field = test_client.get(f"/api/forms/{form['guid']}").json()["fields"]["commentable"]
        assert field["target_type"] == "project"
        assert field["record_id"] is None
        assert field["state"] == "listing_candidates"

    def test_disallowed_type(self, test_client):
        form = _open_form(test_client, "comments")

        response = test_client.put(
            f"/api/forms/{form['guid']}/fields/commentable/type",
            json={"target_type": "course"},
        )

        assert response.status_code == 400
        assert response.json()["allowed"] == ["post", "project"]

    def test_creation_without_type(self, test_client):
        form = _open_form(test_client, "comments")

        response = test_client.post(
            f"/api/forms/{form['guid']}/fields/commentable/creations", json={}
        )

        assert response.status_code == 400


class TestCourseLinks:
    """Course link forms: creation, truncation and disabled creation."""

    def test_new_course_link_with_new_course(self, test_client, test_db_session):
        form = _open_form(test_client, "course_links")
        test_client.patch(
            f"/api/forms/{form['guid']}/values",
            json={"values": {"link": "https://example.com/algebra"}},
        )

        response = _create_inline(test_client, form["guid"], "course", {"name": "Algebra"})
        assert response.status_code == 200
        assert test_client.post(f"/api/forms/{form['guid']}/submit").status_code == 200

        link = test_db_session.query(CourseLink).one()
        assert link.course.name == "Algebra"

    def test_lookup_limit_one(self, test_client, test_settings, sample_course):
        """Test limit 1 with two courses: placeholder, first course, disabled sentinel."""
        test_settings.associations_lookup_list_limit = 1
        first = sample_course(name="Algebra")
        sample_course(name="Biology")

        form = _open_form(test_client, "course_links")
        view = test_client.get(f"/api/forms/{form['guid']}/fields/course").json()

        assert [o["label"] for o in view["options"]] == [
            "Choose an option",
            "Algebra",
            "There are more records available.",
        ]
        assert view["options"][1]["value"] == first.guid
        assert view["options"][2]["disabled"] is True

        response = test_client.put(
            f"/api/forms/{form['guid']}/fields/course/selection",
            json={"record_id": "There are more records available."},
        )
        assert response.status_code == 400

    def test_creation_disabled(self, test_client, test_db_session):
        course_links = get_resource(ResourceType.COURSE_LINK)

        with course_links.temporary_fields(
            attribute("link", required=True),
            belongs_to("course", ResourceType.COURSE, searchable=True, can_create=False),
        ):
            form = _open_form(test_client, "course_links")
            view = test_client.get(f"/api/forms/{form['guid']}/fields/course").json()
            assert view["create_label"] is None
            assert view["searchable"] is True

            response = test_client.post(
                f"/api/forms/{form['guid']}/fields/course/creations", json={}
            )
            assert response.status_code == 403

        assert test_db_session.query(Course).count() == 0


class TestFormLifecycle:
    """Session lifecycle edge cases."""

    def test_unknown_form(self, test_client):
        assert test_client.get("/api/forms/frm_01hgw2bbg00000000000000000").status_code == 404

    def test_discard(self, test_client):
        form = _open_form(test_client, "fish")

        assert test_client.delete(f"/api/forms/{form['guid']}").status_code == 204
        assert test_client.get(f"/api/forms/{form['guid']}").status_code == 404

    def test_resubmitting_creation_does_not_duplicate(self, test_client, test_db_session):
        form = _open_form(test_client, "comments")
        test_client.put(
            f"/api/forms/{form['guid']}/fields/commentable/type", json={"target_type": "post"}
        )
        context = test_client.post(
            f"/api/forms/{form['guid']}/fields/commentable/creations", json={}
        ).json()

        url = f"/api/forms/{form['guid']}/creations/{context['guid']}/submit"
        first = test_client.post(url, json={"fields": {"name": "Test post"}})
        second = test_client.post(url, json={"fields": {"name": "Test post"}})

        assert first.json()["record"] == second.json()["record"]
        assert test_db_session.query(Post).count() == 1

    def test_cancel_creation(self, test_client):
        form = _open_form(test_client, "fish")
        context = test_client.post(
            f"/api/forms/{form['guid']}/fields/user/creations", json={}
        ).json()

        response = test_client.delete(f"/api/forms/{form['guid']}/creations/{context['guid']}")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        state = test_client.get(f"/api/forms/{form['guid']}").json()
        assert state["creations"] == []
        assert state["fields"]["user"]["state"] == "listing_candidates"

    def test_cancel_after_commit_keeps_selection(self, test_client, test_db_session):
        form = _open_form(test_client, "course_links")
        context = test_client.post(
            f"/api/forms/{form['guid']}/fields/course/creations", json={}
        ).json()
        created = test_client.post(
            f"/api/forms/{form['guid']}/creations/{context['guid']}/submit",
            json={"fields": {"name": "Algebra"}},
        ).json()

        response = test_client.delete(f"/api/forms/{form['guid']}/creations/{context['guid']}")

        assert response.status_code == 200
        field = test_client.get(f"/api/forms/{form['guid']}").json()["fields"]["course"]
        assert field["record_id"] == created["record"]["id"]
        assert field["state"] == "selected"
        assert test_db_session.query(Course).count() == 1

    def test_submit_invalid_parent(self, test_client):
        form = _open_form(test_client, "fish")

        response = test_client.post(f"/api/forms/{form['guid']}/submit")

        assert response.status_code == 422
        assert "name" in response.json()["errors"]
