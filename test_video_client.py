"""Tests for the Veo long-running operation client."""
import base64
from unittest.mock import AsyncMock

import httpx
import pytest
from google.genai import errors as genai_errors

from auth.services import key_state
from common.error_messages import ErrorCode
from common.errors import AuthError, RemoteOperationError, NetworkError, MissingPayloadError, is_credential_error
from videos import services
from videos.blobs import BlobStore
from videos.models import GenerationRequest, GenerationConfig, ImageData, AspectRatio, Resolution
from videos.services import (
    build_generate_payload,
    build_download_url,
    poll_operation,
    extract_video_uri,
    download_video,
    generate_video,
)

VIDEO_URI = "https://generativelanguage.googleapis.com/v1beta/files/abc123:download?alt=media"
MODEL = "veo-3.1-fast-generate-preview"


def mock_http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def lake_request() -> GenerationRequest:
    return GenerationRequest(
        prompt="a calm lake at sunset",
        config=GenerationConfig(aspect_ratio=AspectRatio.LANDSCAPE, resolution=Resolution.P720),
    )


class TestPayload:
    def test_text_only_request_omits_image_key(self):
        payload = build_generate_payload(lake_request(), MODEL)

        assert "image" not in payload
        assert payload == {
            "model": MODEL,
            "prompt": "a calm lake at sunset",
            "config": {"numberOfVideos": 1, "resolution": "720p", "aspectRatio": "16:9"},
        }

    def test_image_request_carries_decoded_bytes(self, png_base64):
        request = GenerationRequest(
            prompt="animate this",
            image=ImageData(mime_type="image/png", data=png_base64),
            config=GenerationConfig(aspect_ratio=AspectRatio.PORTRAIT, resolution=Resolution.P1080),
        )

        payload = build_generate_payload(request, MODEL)

        assert payload["image"] == {"imageBytes": base64.b64decode(png_base64), "mimeType": "image/png"}
        assert payload["config"] == {"numberOfVideos": 1, "resolution": "1080p", "aspectRatio": "9:16"}

    def test_data_url_prefix_is_stripped(self, png_base64):
        image = ImageData(mime_type="image/png", data=f"data:image/png;base64,{png_base64}")
        assert image.data == png_base64

    def test_request_needs_prompt_or_image(self):
        with pytest.raises(ValueError):
            GenerationRequest(prompt="   ")

    def test_non_image_mime_type_rejected(self, png_base64):
        with pytest.raises(ValueError):
            ImageData(mime_type="video/mp4", data=png_base64)

    def test_invalid_base64_rejected(self):
        with pytest.raises(ValueError):
            ImageData(mime_type="image/png", data="not base64!!")

    def test_request_is_immutable(self):
        request = lake_request()
        with pytest.raises(Exception):
            request.prompt = "something else"


class TestDownloadUrl:
    def test_uri_with_query_string_uses_ampersand(self):
        assert build_download_url(VIDEO_URI, "k1") == f"{VIDEO_URI}&key=k1"

    def test_uri_without_query_string_uses_question_mark(self):
        uri = "https://example.com/files/abc123"
        assert build_download_url(uri, "k1") == "https://example.com/files/abc123?key=k1"

    def test_uri_ending_in_question_mark(self):
        assert build_download_url("https://example.com/v?", "k1") == "https://example.com/v?key=k1"

    def test_key_is_url_encoded(self):
        assert build_download_url("https://example.com/v", "a b&c") == "https://example.com/v?key=a%20b%26c"


class TestPolling:
    @pytest.mark.asyncio
    async def test_polls_until_done(self, make_operation, fake_client):
        ops = [make_operation(), make_operation(), make_operation(), make_operation(done=True, uris=[VIDEO_URI])]
        client = fake_client(*ops)

        result = await poll_operation(client, ops[0], 0)

        assert result is ops[-1]
        assert client.aio.operations.get.await_count == 3
        # each status call re-submits the previous handle
        submitted = [call.args[0] for call in client.aio.operations.get.await_args_list]
        assert submitted == ops[:3]

    @pytest.mark.asyncio
    async def test_already_done_operation_is_not_polled(self, make_operation, fake_client):
        op = make_operation(done=True, uris=[VIDEO_URI])
        client = fake_client(op)

        assert await poll_operation(client, op, 0) is op
        client.aio.operations.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_error_fails_immediately_without_further_polling(self, make_operation, fake_client):
        ops = [
            make_operation(),
            make_operation(error={"code": 3, "message": "Prompt was blocked by safety filters"}),
            make_operation(done=True, uris=[VIDEO_URI]),
        ]
        client = fake_client(*ops)

        with pytest.raises(RemoteOperationError) as exc_info:
            await poll_operation(client, ops[0], 0)

        assert exc_info.value.message == "Prompt was blocked by safety filters"
        assert client.aio.operations.get.await_count == 1

    @pytest.mark.asyncio
    async def test_error_without_message_gets_generic_text(self, make_operation, fake_client):
        ops = [make_operation(), make_operation(done=True, error={"code": 13})]
        client = fake_client(*ops)

        with pytest.raises(RemoteOperationError, match="Unknown error during video generation"):
            await poll_operation(client, ops[0], 0)

    @pytest.mark.asyncio
    async def test_empty_error_payload_is_ignored(self, make_operation, fake_client):
        ops = [make_operation(error={}), make_operation(done=True, uris=[VIDEO_URI])]
        client = fake_client(*ops)

        assert await poll_operation(client, ops[0], 0) is ops[-1]

    @pytest.mark.asyncio
    async def test_status_call_rejected_key_raises_auth_error(self, make_operation, fake_client):
        client = fake_client(make_operation())
        client.aio.operations.get.side_effect = genai_errors.ClientError(
            400, {"error": {"code": 400, "message": "API key not valid. Please pass a valid API key.",
                            "status": "INVALID_ARGUMENT"}}
        )

        with pytest.raises(AuthError):
            await poll_operation(client, make_operation(), 0)

    @pytest.mark.asyncio
    async def test_operation_error_about_key_stays_remote_error(self, make_operation, fake_client):
        ops = [make_operation(), make_operation(done=True, error={"code": 3, "message": "API key not valid."})]
        client = fake_client(*ops)

        with pytest.raises(RemoteOperationError) as exc_info:
            await poll_operation(client, ops[0], 0)

        assert not isinstance(exc_info.value, AuthError)
        assert is_credential_error(exc_info.value)


class TestCredentialDetection:
    @pytest.mark.parametrize("code, status", [
        (401, "UNAUTHENTICATED"),
        (403, "PERMISSION_DENIED"),
        (400, "UNAUTHENTICATED"),
        (403, None),
    ])
    def test_structured_fields_without_matching_message(self, code, status):
        body = {"error": {"code": code, "message": "x"}}
        if status:
            body["error"]["status"] = status
        assert is_credential_error(genai_errors.ClientError(code, body))

    def test_other_client_errors_are_not_credential_errors(self):
        error = genai_errors.ClientError(
            400, {"error": {"code": 400, "message": "Prompt too long", "status": "INVALID_ARGUMENT"}}
        )
        assert not is_credential_error(error)

    def test_message_pattern_fallback(self):
        assert is_credential_error(RuntimeError("Requested entity was not found."))
        assert not is_credential_error(RuntimeError("socket closed"))


class TestResultExtraction:
    def test_first_video_uri(self, make_operation):
        op = make_operation(done=True, uris=[VIDEO_URI, "https://example.com/second"])
        assert extract_video_uri(op) == VIDEO_URI

    def test_empty_result_list_raises_missing_payload(self, make_operation):
        with pytest.raises(MissingPayloadError, match="No video returned from the API."):
            extract_video_uri(make_operation(done=True, uris=[]))

    def test_missing_response_raises_missing_payload(self, make_operation):
        with pytest.raises(MissingPayloadError):
            extract_video_uri(make_operation(done=True))

    def test_missing_uri_raises_missing_payload(self, make_operation):
        with pytest.raises(MissingPayloadError, match="Video URI is missing."):
            extract_video_uri(make_operation(done=True, uris=[None]))


class TestDownload:
    @pytest.mark.asyncio
    async def test_returns_body(self):
        async with mock_http(lambda request: httpx.Response(200, content=b"mp4-bytes")) as http:
            assert await download_video("https://example.com/v?key=k", http) == b"mp4-bytes"

    @pytest.mark.asyncio
    async def test_non_success_status_raises_network_error(self):
        async with mock_http(lambda request: httpx.Response(403)) as http:
            with pytest.raises(NetworkError) as exc_info:
                await download_video("https://example.com/v?key=k", http)

        assert exc_info.value.status_code == 403
        assert "Forbidden" in exc_info.value.message
        assert exc_info.value.error_code == ErrorCode.VIDEO_DOWNLOAD_FAILED

    @pytest.mark.asyncio
    async def test_transport_failure_raises_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_http(handler) as http:
            with pytest.raises(NetworkError):
                await download_video("https://example.com/v?key=k", http)


class TestGenerateVideo:
    @pytest.mark.asyncio
    async def test_end_to_end_text_to_video(self, make_operation, fake_client):
        ops = [make_operation(), make_operation(), make_operation(done=True, uris=[VIDEO_URI])]
        client = fake_client(*ops)
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, content=b"\x00\x00\x00\x18ftypmp42")

        blobs = BlobStore()
        async with mock_http(handler) as http:
            blob = await generate_video(
                lake_request(), api_key="secret-key", client=client, http_client=http,
                poll_interval=0, blobs=blobs, model=MODEL,
            )

        client.aio.models.generate_videos.assert_awaited_once_with(
            model=MODEL,
            prompt="a calm lake at sunset",
            config={"numberOfVideos": 1, "resolution": "720p", "aspectRatio": "16:9"},
        )
        assert client.aio.operations.get.await_count == 2
        assert requested == [f"{VIDEO_URI}&key=secret-key"]
        assert blob.url == f"/api/blobs/{blob.id}"
        assert blob.mime_type == "video/mp4"
        assert blobs.get(blob.id).data == b"\x00\x00\x00\x18ftypmp42"

    @pytest.mark.asyncio
    async def test_missing_key_raises_auth_error(self):
        key_state.clear()

        with pytest.raises(AuthError) as exc_info:
            await generate_video(lake_request())

        assert exc_info.value.error_code == ErrorCode.MISSING_API_KEY
        assert exc_info.value.message == "API Key not found. Please select a key."

    @pytest.mark.asyncio
    async def test_rejected_key_on_submit_raises_auth_error(self, make_operation, fake_client):
        client = fake_client(make_operation())
        client.aio.models.generate_videos.side_effect = genai_errors.ClientError(
            404, {"error": {"code": 404, "message": "Requested entity was not found.", "status": "NOT_FOUND"}}
        )

        with pytest.raises(AuthError):
            await generate_video(lake_request(), api_key="k", client=client, poll_interval=0)

    @pytest.mark.asyncio
    async def test_unauthenticated_status_on_submit_raises_auth_error(self, make_operation, fake_client):
        client = fake_client(make_operation())
        client.aio.models.generate_videos.side_effect = genai_errors.ClientError(
            401, {"error": {"code": 401, "message": "x", "status": "UNAUTHENTICATED"}}
        )

        with pytest.raises(AuthError):
            await generate_video(lake_request(), api_key="k", client=client, poll_interval=0)

    @pytest.mark.asyncio
    async def test_default_client_is_closed(self, monkeypatch, make_operation, fake_client):
        built = []

        def build_client(api_key):
            client = fake_client(make_operation(done=True, uris=[VIDEO_URI]))
            client.aio.aclose = AsyncMock()
            built.append((api_key, client))
            return client
        monkeypatch.setattr(services.genai, "Client", build_client)

        async with mock_http(lambda request: httpx.Response(200, content=b"video")) as http:
            await generate_video(lake_request(), api_key="k", http_client=http, poll_interval=0,
                                 blobs=BlobStore())

        assert len(built) == 1
        api_key, client = built[0]
        assert api_key == "k"
        client.aio.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_default_client_is_closed_on_failure(self, monkeypatch, make_operation, fake_client):
        client = fake_client(make_operation())
        client.aio.models.generate_videos.side_effect = genai_errors.ServerError(
            500, {"error": {"code": 500, "message": "Internal error", "status": "INTERNAL"}}
        )
        client.aio.aclose = AsyncMock()
        monkeypatch.setattr(services.genai, "Client", lambda api_key: client)

        with pytest.raises(RemoteOperationError):
            await generate_video(lake_request(), api_key="k", poll_interval=0)

        client.aio.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_caller_client_is_left_open(self, make_operation, fake_client):
        client = fake_client(make_operation(done=True, uris=[VIDEO_URI]))
        client.aio.aclose = AsyncMock()

        async with mock_http(lambda request: httpx.Response(200, content=b"video")) as http:
            await generate_video(lake_request(), api_key="k", client=client, http_client=http,
                                 poll_interval=0, blobs=BlobStore())

        client.aio.aclose.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_quota_error_on_submit(self, make_operation, fake_client):
        client = fake_client(make_operation())
        client.aio.models.generate_videos.side_effect = genai_errors.ClientError(
            429, {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}
        )

        with pytest.raises(RemoteOperationError) as exc_info:
            await generate_video(lake_request(), api_key="k", client=client, poll_interval=0)

        assert exc_info.value.error_code == ErrorCode.GEMINI_RATE_LIMIT

    @pytest.mark.asyncio
    async def test_nothing_is_stored_when_download_fails(self, make_operation, fake_client):
        client = fake_client(make_operation(done=True, uris=[VIDEO_URI]))
        blobs = BlobStore()

        async with mock_http(lambda request: httpx.Response(500)) as http:
            with pytest.raises(NetworkError):
                await generate_video(lake_request(), api_key="k", client=client, http_client=http,
                                     poll_interval=0, blobs=blobs)

        assert len(blobs) == 0
