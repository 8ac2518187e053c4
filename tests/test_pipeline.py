import base64

import pytest

from insta_helper.caption.generator import CaptionGenerator, CaptionResult, GeminiConfig
from insta_helper.caption.options import CaptionRequestOptions
from insta_helper.services.pipeline import PhotoProcessor, ProcessingError, ProcessingResult
from conftest import FakeClient, image_bytes, open_bytes

BILINGUAL_ANSWER = (
    "[CAPTION]\n"
    "夕焼けに染まる空、最高すぎる！\n"
    "The sky on fire at sunset, simply the best!\n\n"
    "[HASHTAGS]\n"
    + " ".join(f"#tag{i}" for i in range(15))
)


class RecordingGenerator:
    def __init__(self):
        self.calls = []

    def generate(self, image, opts):
        self.calls.append((image, opts))
        return CaptionResult("caption", "#a #b")


class FakeStyler:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def restyle(self, image_bytes, style):
        self.calls.append((image_bytes, style))
        return self.result


def _decode_uri(uri):
    head, payload = uri.split(",", 1)
    assert head == "data:image/jpeg;base64"
    return open_bytes(base64.b64decode(payload))


def test_end_to_end_bilingual_many_hashtags_with_keyword(sleeps, record_sleep):
    client = FakeClient(BILINGUAL_ANSWER)
    generator = CaptionGenerator(GeminiConfig(api_key="k"), client=client, sleep=record_sleep)
    opts = CaptionRequestOptions.from_params(
        text_style="humor", language="bilingual", hashtag_amount="many", required_keyword="sunset"
    )

    result = PhotoProcessor(generator).process(image_bytes(4000, 3000, (250, 120, 30)), opts)

    assert isinstance(result, ProcessingResult) and result.success
    img = _decode_uri(result.processed_image)
    assert img.format == "JPEG" and img.size == (1080, 1080)
    assert result.generated_text.index("夕焼け") < result.generated_text.index("The sky")
    tags = result.hashtags.split()
    assert "#sunset" in tags
    assert len(tags) >= 15
    prompt = client.calls[0]["contents"][0]
    assert "exactly 15 hashtags" in prompt
    assert "humorous" in prompt
    assert sleeps == []


def test_generator_receives_normalized_image():
    gen = RecordingGenerator()
    opts = CaptionRequestOptions()
    PhotoProcessor(gen, output_size=320, quality=80).process(image_bytes(640, 200), opts)
    image, seen_opts = gen.calls[0]
    assert (image.width, image.height) == (320, 320)
    assert open_bytes(image.data).size == (320, 320)
    assert seen_opts is opts


def test_response_shape():
    result = PhotoProcessor(RecordingGenerator()).process(image_bytes(100, 100), CaptionRequestOptions())
    body = result.to_response()
    assert set(body) == {"success", "processedImage", "generatedText", "hashtags"}
    assert body["success"] is True
    assert body["generatedText"] == "caption"
    assert body["processedImage"].startswith("data:image/jpeg;base64,")


def test_undecodable_upload_raises_processing_error():
    gen = RecordingGenerator()
    with pytest.raises(ProcessingError) as info:
        PhotoProcessor(gen).process(b"not an image", CaptionRequestOptions())
    assert info.value.details
    assert gen.calls == []


def test_missing_key_still_returns_image_and_fallback():
    gen = CaptionGenerator(GeminiConfig(api_key=None))
    result = PhotoProcessor(gen).process(image_bytes(300, 500), CaptionRequestOptions())
    assert result.generated_text == "素敵な写真が撮れました！✨"
    assert result.hashtags == "#instagram #photo #instagood"
    assert _decode_uri(result.processed_image).size == (1080, 1080)


def test_style_stage_uses_restyled_image():
    styled = image_bytes(1024, 1024, (255, 0, 0))
    styler = FakeStyler(styled)
    opts = CaptionRequestOptions.from_params(image_style="anime")

    result = PhotoProcessor(RecordingGenerator(), styler=styler, styling_size=1024).process(
        image_bytes(1600, 900, (0, 0, 255)), opts
    )

    pre, style = styler.calls[0]
    assert style == "anime"
    assert open_bytes(pre).size == (1024, 1024)
    img = _decode_uri(result.processed_image).convert("RGB")
    assert img.size == (1080, 1080)
    r, g, b = img.getpixel((540, 540))
    assert r > 200 and b < 60


@pytest.mark.parametrize("styler_output", [None, b"", b"garbage"])
def test_style_stage_falls_back_to_plain_crop(styler_output):
    styler = FakeStyler(styler_output)
    opts = CaptionRequestOptions.from_params(image_style="vintage")
    result = PhotoProcessor(RecordingGenerator(), styler=styler).process(image_bytes(900, 600, (0, 0, 255)), opts)
    assert len(styler.calls) == 1
    img = _decode_uri(result.processed_image).convert("RGB")
    r, g, b = img.getpixel((540, 540))
    assert b > 200 and r < 60


def test_style_stage_needs_explicit_request():
    styler = FakeStyler(image_bytes(1024, 1024))
    PhotoProcessor(RecordingGenerator(), styler=styler).process(image_bytes(200, 200), CaptionRequestOptions())
    assert styler.calls == []


def test_style_request_ignored_without_styler():
    opts = CaptionRequestOptions.from_params(image_style="anime")
    result = PhotoProcessor(RecordingGenerator()).process(image_bytes(200, 200), opts)
    assert result.success
