from mea_form.utils import failure_key, period_ranges, range_suffix_of, safe_count


def test_safe_count_coercion():
    assert safe_count(None) == 0
    assert safe_count("") == 0
    assert safe_count("   ") == 0
    assert safe_count("N/A") == 0
    assert safe_count("n/a") == 0
    assert safe_count("abc") == 0
    assert safe_count(True) == 0
    assert safe_count(float("nan")) == 0
    assert safe_count("3") == 3
    assert safe_count(" 7 ") == 7
    assert safe_count(4.0) == 4
    assert isinstance(safe_count("4.0"), int)
    assert safe_count("2.5") == 2.5


def test_period_ranges_and_suffix():
    ranges = period_ranges("Q2")
    assert len(ranges) == 3
    assert period_ranges("") == []
    assert period_ranges(None) == []
    assert range_suffix_of(f"move_in_{ranges[1]}", ranges) == ranges[1]
    assert range_suffix_of("move_in", ranges) is None


def test_failure_key():
    assert failure_key("General Mathematics") == "fail_subject_General Mathematics"
