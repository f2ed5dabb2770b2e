"""
Tests for feedback endpoints
"""
import io

from bson import ObjectId

from conftest import POSTER_URL


def feedback_body(**overrides):
    body = {"user_name": "Ada", "user_email": "ada@example.com", "user_message": "Episode 3 link is broken"}
    body.update(overrides)
    return body


class TestFeedback:
    """Tests for /api/v1/feedback"""

    def test_create_without_attachment(self, client, cache, database, uploader):
        cache.set("all_feedback", [{"user_name": "stale"}])

        response = client.post("/api/v1/feedback/create", data=feedback_body())
        entry = response.get_json()["response"]

        assert response.status_code == 201
        assert entry["complain_sample_img"] is None
        assert entry["user_message"] == "Episode 3 link is broken"
        assert cache.get("all_feedback") is None
        uploader.upload.assert_not_called()

        listed = client.get("/api/v1/feedback/get").get_json()["response"]
        assert [item["_id"] for item in listed] == [entry["_id"]]
        assert cache.get("all_feedback") == listed

    def test_create_with_attachment(self, client, uploader):
        form = feedback_body(complain_sample_img=(io.BytesIO(b"png"), "broken.png", "image/png"))

        response = client.post("/api/v1/feedback/create", data=form, content_type="multipart/form-data")

        assert response.status_code == 201
        assert response.get_json()["response"]["complain_sample_img"] == POSTER_URL
        _, options = uploader.upload.call_args
        assert options["folder"] == "feedback_images"
        assert options["format"] == "avif"

    def test_create_rejects_bad_attachment(self, client, database):
        form = feedback_body(complain_sample_img=(io.BytesIO(b"text"), "notes.txt", "text/plain"))

        response = client.post("/api/v1/feedback/create", data=form, content_type="multipart/form-data")

        assert response.status_code == 400
        assert database["feedback"].count_documents({}) == 0

    def test_create_requires_fields(self, client):
        response = client.post("/api/v1/feedback/create", json=feedback_body(user_email=""))

        assert response.status_code == 400
        assert response.get_json()["occurredAt"] == "create feedback"

    def test_upload_failure_is_reported(self, client, uploader, database):
        from catalog_api.errors import UploadFailed

        uploader.upload.side_effect = UploadFailed("Image upload failed: quota exceeded")
        form = feedback_body(complain_sample_img=(io.BytesIO(b"png"), "broken.png", "image/png"))

        response = client.post("/api/v1/feedback/create", data=form, content_type="multipart/form-data")

        assert response.status_code == 500
        assert response.get_json()["message"] == "Image upload failed: quota exceeded"
        assert database["feedback"].count_documents({}) == 0

    def test_empty_list_not_cached(self, client, cache):
        response = client.get("/api/v1/feedback/get")

        assert response.status_code == 404
        assert response.get_json()["message"] == "Feedback not found"
        assert cache.get("all_feedback") is None

    def test_list_uses_store_default_ttl(self, client, clock, cache):
        client.post("/api/v1/feedback/create", json=feedback_body())
        client.get("/api/v1/feedback/get")

        clock.advance(cache.default_ttl - 1)
        assert cache.get("all_feedback") is not None
        clock.advance(1)
        assert cache.get("all_feedback") is None

    def test_delete_purges_list(self, client, cache, database):
        entry_id = client.post("/api/v1/feedback/create", json=feedback_body()).get_json()["response"]["_id"]
        client.get("/api/v1/feedback/get")

        response = client.delete(f"/api/v1/feedback/destroy/{entry_id}")

        assert response.status_code == 200
        assert cache.get("all_feedback") is None
        assert database["feedback"].count_documents({}) == 0
        assert client.get("/api/v1/feedback/get").status_code == 404

    def test_delete_invalid_and_unknown(self, client):
        assert client.delete("/api/v1/feedback/destroy/xyz").status_code == 400
        assert client.delete(f"/api/v1/feedback/destroy/{ObjectId()}").status_code == 404
