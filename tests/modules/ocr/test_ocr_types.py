from sessionflow.modules.ocr.types import OcrBox, OcrResult, normalize_text


def test_normalize_text_folds_case_and_whitespace():
    assert normalize_text("  Sign   In\tOptions ") == "sign in options"


def test_find_prefers_highest_confidence():
    result = OcrResult(boxes=[
        OcrBox("Verification code", 0.72, [(0, 0), (10, 10)]),
        OcrBox("Use verification code from my mobile app", 0.91, [(0, 20), (40, 30)]),
        OcrBox("Welcome", 0.99, []),
    ])

    best = result.find("VERIFICATION")
    assert best.confidence == 0.91
    assert len(result.find_all("verification")) == 2
    assert result.find("Desktop") is None


def test_center_of_empty_box_is_origin():
    assert OcrBox("x", 1.0, []).center == (0, 0)
    assert OcrBox("x", 1.0, [(0, 0), (10, 0), (10, 20), (0, 20)]).center == (5, 10)
