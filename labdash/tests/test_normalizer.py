import pytest

from labdash.services.normalizer import (
    CANONICAL_NAMES,
    PARAMETER_NAME_MAP,
    ensure_canonical_name,
    normalize_parameter_name,
)


@pytest.mark.parametrize("raw", ["HB", "Hb1", "haemoglobin", "  hgb  ", "Hb%"])
def test_hemoglobin_variants_collapse(raw):
    assert normalize_parameter_name(raw) == "Hemoglobin"


def test_normalization_is_deterministic():
    for raw in ["TSH", "S. Creatinine", "random thing", "LDL-C"]:
        assert normalize_parameter_name(raw) == normalize_parameter_name(raw)


def test_exact_match_wins_over_table_order():
    # "hba1c" contains "hb" but is its own key
    assert normalize_parameter_name("HbA1c") == "Glycated Hemoglobin (HbA1c)"
    assert normalize_parameter_name("TSH") == "Thyroid Stimulating Hormone (TSH)"


def test_contained_key_uses_first_key_in_table_order():
    assert normalize_parameter_name("Serum Hemoglobin level") == "Hemoglobin"
    assert normalize_parameter_name("Hemoglobin (Hb)") == "Hemoglobin"
    # "wbc" comes before "plt" in the table
    assert normalize_parameter_name("wbc / plt ratio") == "White Blood Cell Count"


def test_short_keys_only_match_whole_tokens():
    assert normalize_parameter_name("HbA1c level") == "Glycated Hemoglobin (HbA1c)"
    assert normalize_parameter_name("Creatine Kinase") == "Creatine Kinase"


def test_unlisted_name_is_title_cased():
    assert normalize_parameter_name("Some Unlisted Marker") == "Some Unlisted Marker"
    assert normalize_parameter_name("  lipoprotein   (a) ") == "Lipoprotein (a)"
    assert normalize_parameter_name("ANTI-TPO") == "Anti-tpo"


def test_empty_name_stays_empty():
    assert normalize_parameter_name("") == ""
    assert normalize_parameter_name("   ") == ""


def test_table_is_read_only():
    with pytest.raises(TypeError):
        PARAMETER_NAME_MAP["hb"] = "Something Else"  # type: ignore[index]


def test_ensure_canonical_keeps_canonical_names():
    assert "Glycated Hemoglobin (HbA1c)" in CANONICAL_NAMES
    assert ensure_canonical_name("Glycated Hemoglobin (HbA1c)") == "Glycated Hemoglobin (HbA1c)"
    assert ensure_canonical_name("sgpt") == "Alanine Aminotransferase (ALT)"
