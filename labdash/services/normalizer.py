"""Map lab parameter names reported by different labs onto one canonical name."""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Pattern, Tuple

# Order matters: the substring fallback returns the first key contained in the
# input, so entries are kept in the order they were first introduced.
_NAME_TABLE = (
    # Hemoglobin
    ("hb", "Hemoglobin"),
    ("hb%", "Hemoglobin"),
    ("hgb", "Hemoglobin"),
    ("hb1", "Hemoglobin"),
    ("haemoglobin", "Hemoglobin"),
    ("hemoglobin", "Hemoglobin"),
    # RBC
    ("rbc", "Red Blood Cell Count"),
    ("rbc count", "Red Blood Cell Count"),
    ("red blood cells", "Red Blood Cell Count"),
    ("erythrocytes", "Red Blood Cell Count"),
    # WBC
    ("wbc", "White Blood Cell Count"),
    ("wbc count", "White Blood Cell Count"),
    ("white blood cells", "White Blood Cell Count"),
    ("leucocytes", "White Blood Cell Count"),
    ("leukocytes", "White Blood Cell Count"),
    ("tlc", "White Blood Cell Count"),
    ("total leucocyte count", "White Blood Cell Count"),
    # Platelets
    ("plt", "Platelet Count"),
    ("platelets", "Platelet Count"),
    ("platelet count", "Platelet Count"),
    ("thrombocytes", "Platelet Count"),
    # Hematocrit
    ("hct", "Hematocrit"),
    ("pcv", "Hematocrit"),
    ("packed cell volume", "Hematocrit"),
    ("hematocrit", "Hematocrit"),
    ("haematocrit", "Hematocrit"),
    # Red cell indices
    ("mcv", "Mean Corpuscular Volume"),
    ("mean corpuscular volume", "Mean Corpuscular Volume"),
    ("mch", "Mean Corpuscular Hemoglobin"),
    ("mean corpuscular hemoglobin", "Mean Corpuscular Hemoglobin"),
    ("mchc", "Mean Corpuscular Hemoglobin Concentration"),
    ("mean corpuscular hemoglobin concentration", "Mean Corpuscular Hemoglobin Concentration"),
    ("rdw", "Red Cell Distribution Width"),
    ("rdw-cv", "Red Cell Distribution Width"),
    ("red cell distribution width", "Red Cell Distribution Width"),
    ("esr", "Erythrocyte Sedimentation Rate"),
    ("erythrocyte sedimentation rate", "Erythrocyte Sedimentation Rate"),
    # Blood sugar
    ("fbs", "Fasting Blood Sugar"),
    ("fasting glucose", "Fasting Blood Sugar"),
    ("fasting blood sugar", "Fasting Blood Sugar"),
    ("fasting blood glucose", "Fasting Blood Sugar"),
    ("ppbs", "Post Prandial Blood Sugar"),
    ("pp glucose", "Post Prandial Blood Sugar"),
    ("post prandial blood sugar", "Post Prandial Blood Sugar"),
    ("rbs", "Random Blood Sugar"),
    ("random glucose", "Random Blood Sugar"),
    ("random blood sugar", "Random Blood Sugar"),
    ("blood glucose", "Blood Glucose"),
    ("glucose", "Blood Glucose"),
    # HbA1c
    ("hba1c", "Glycated Hemoglobin (HbA1c)"),
    ("a1c", "Glycated Hemoglobin (HbA1c)"),
    ("glycated hemoglobin", "Glycated Hemoglobin (HbA1c)"),
    ("glycosylated hemoglobin", "Glycated Hemoglobin (HbA1c)"),
    # Lipid profile
    ("tc", "Total Cholesterol"),
    ("total cholesterol", "Total Cholesterol"),
    ("cholesterol", "Total Cholesterol"),
    ("hdl", "HDL Cholesterol"),
    ("hdl-c", "HDL Cholesterol"),
    ("hdl cholesterol", "HDL Cholesterol"),
    ("ldl", "LDL Cholesterol"),
    ("ldl-c", "LDL Cholesterol"),
    ("ldl cholesterol", "LDL Cholesterol"),
    ("vldl", "VLDL Cholesterol"),
    ("vldl-c", "VLDL Cholesterol"),
    ("tg", "Triglycerides"),
    ("triglycerides", "Triglycerides"),
    # Liver function
    ("sgpt", "Alanine Aminotransferase (ALT)"),
    ("alt", "Alanine Aminotransferase (ALT)"),
    ("sgot", "Aspartate Aminotransferase (AST)"),
    ("ast", "Aspartate Aminotransferase (AST)"),
    ("alp", "Alkaline Phosphatase"),
    ("alkaline phosphatase", "Alkaline Phosphatase"),
    ("ggt", "Gamma-Glutamyl Transferase (GGT)"),
    ("gamma gt", "Gamma-Glutamyl Transferase (GGT)"),
    ("bilirubin", "Total Bilirubin"),
    ("total bilirubin", "Total Bilirubin"),
    ("direct bilirubin", "Direct Bilirubin"),
    ("indirect bilirubin", "Indirect Bilirubin"),
    ("albumin", "Albumin"),
    ("globulin", "Globulin"),
    ("total protein", "Total Protein"),
    ("a/g ratio", "Albumin/Globulin Ratio"),
    ("ag ratio", "Albumin/Globulin Ratio"),
    # Kidney function
    ("bun", "Blood Urea Nitrogen"),
    ("blood urea nitrogen", "Blood Urea Nitrogen"),
    ("urea", "Blood Urea"),
    ("blood urea", "Blood Urea"),
    ("creatinine", "Serum Creatinine"),
    ("serum creatinine", "Serum Creatinine"),
    ("sr. creatinine", "Serum Creatinine"),
    ("s. creatinine", "Serum Creatinine"),
    ("uric acid", "Uric Acid"),
    ("egfr", "Estimated GFR"),
    ("gfr", "Estimated GFR"),
    # Electrolytes
    ("na", "Sodium"),
    ("sodium", "Sodium"),
    ("k", "Potassium"),
    ("potassium", "Potassium"),
    ("cl", "Chloride"),
    ("chloride", "Chloride"),
    ("ca", "Calcium"),
    ("calcium", "Calcium"),
    ("mg", "Magnesium"),
    ("magnesium", "Magnesium"),
    ("phosphorus", "Phosphorus"),
    ("phosphate", "Phosphorus"),
    # Thyroid
    ("tsh", "Thyroid Stimulating Hormone (TSH)"),
    ("thyroid stimulating hormone", "Thyroid Stimulating Hormone (TSH)"),
    ("t3", "Triiodothyronine (T3)"),
    ("total t3", "Triiodothyronine (T3)"),
    ("t4", "Thyroxine (T4)"),
    ("total t4", "Thyroxine (T4)"),
    ("ft3", "Free T3"),
    ("free t3", "Free T3"),
    ("ft4", "Free T4"),
    ("free t4", "Free T4"),
    # Vitamins
    ("vit d", "Vitamin D"),
    ("vitamin d", "Vitamin D"),
    ("25-oh vitamin d", "Vitamin D"),
    ("vit b12", "Vitamin B12"),
    ("vitamin b12", "Vitamin B12"),
    ("b12", "Vitamin B12"),
    ("folate", "Folate"),
    ("folic acid", "Folate"),
    # Iron studies
    ("iron", "Serum Iron"),
    ("serum iron", "Serum Iron"),
    ("tibc", "Total Iron Binding Capacity"),
    ("ferritin", "Ferritin"),
    ("serum ferritin", "Ferritin"),
    # Differential count
    ("neutrophils", "Neutrophils"),
    ("lymphocytes", "Lymphocytes"),
    ("monocytes", "Monocytes"),
    ("eosinophils", "Eosinophils"),
    ("basophils", "Basophils"),
    # Others
    ("crp", "C-Reactive Protein"),
    ("c-reactive protein", "C-Reactive Protein"),
    ("hs-crp", "High-Sensitivity CRP"),
    ("psa", "Prostate Specific Antigen"),
)

PARAMETER_NAME_MAP: Mapping[str, str] = MappingProxyType(dict(_NAME_TABLE))
CANONICAL_NAMES = frozenset(PARAMETER_NAME_MAP.values())

# Unlike a plain substring scan, a key only matches inside a longer name as a
# whole token, so "k" does not match "marker" and "hb" does not match "hba1c".
_KEY_PATTERNS: Tuple[Tuple[Pattern[str], str], ...] = tuple(
    (re.compile(r"(?<![a-z0-9])" + re.escape(key) + r"(?![a-z0-9])"), value)
    for key, value in PARAMETER_NAME_MAP.items()
)


def _title_case(name: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split())


def normalize_parameter_name(raw_name: str) -> str:
    """Return the canonical medical name for ``raw_name``.

    Exact table hits win; otherwise the first table key (in table order) that
    the lowercased name contains as a whole token is used. Names matching
    nothing are title-cased.
    """
    lower_name = (raw_name or "").strip().lower()

    canonical = PARAMETER_NAME_MAP.get(lower_name)
    if canonical:
        return canonical

    for pattern, value in _KEY_PATTERNS:
        if pattern.search(lower_name):
            return value

    return _title_case(raw_name or "")


def ensure_canonical_name(name: str) -> str:
    """Normalize ``name`` unless it already is a canonical name."""
    cleaned = (name or "").strip()
    if cleaned in CANONICAL_NAMES:
        return cleaned
    return normalize_parameter_name(cleaned)


__all__ = [
    "PARAMETER_NAME_MAP",
    "CANONICAL_NAMES",
    "normalize_parameter_name",
    "ensure_canonical_name",
]
