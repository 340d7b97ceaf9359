from pharmacy.core.sanitize import sanitize_input, strip_tags


def test_strip_tags_and_whitespace():
    assert strip_tags("  <p>Take <b>two</b> daily</p> ") == "Take two daily"


def test_nested_structures():
    data = {"name": "<i>Aspirin</i>", "tags": ["<b>otc</b>", 3], "meta": {"note": " x "}, "price": None}

    assert sanitize_input(data) == {"name": "Aspirin", "tags": ["otc", 3], "meta": {"note": "x"}, "price": None}


def test_non_strings_untouched():
    assert sanitize_input(42) == 42
