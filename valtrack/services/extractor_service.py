# =======================================================================================
# valtrack/services/extractor_service.py - OCR Field Extraction
# =======================================================================================
import re
from typing import Dict, Optional

ID_PATTERNS = {
    "Drivers License": re.compile(r"[A-Z]\d{2}-\d{2}-\d{6}", re.IGNORECASE),
    "National ID": re.compile(r"\b\d{16}\b"),
    "UMID": re.compile(r"\b\d{4}-\d{7}-\d{1}\b"),
    "Passport": re.compile(r"\b[A-Z]\d{7}[A-Z]\b|\b[A-Z][0-9]{7}\b", re.IGNORECASE),
}

DOB_PATTERNS = [
    re.compile(r"\b\d{2}/\d{2}/\d{4}\b"),
    re.compile(r"\b\d{2}\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{4}\b", re.IGNORECASE),
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),
]

DOB_LABEL = re.compile(r"(?:Date of Birth|DOB)[:\s]+(.+)", re.IGNORECASE)
SURNAME_LABEL = re.compile(r"(?:Surname|Last Name)[:\s]+([A-Z\s]+)", re.IGNORECASE)
FIRSTNAME_LABEL = re.compile(r"(?:First Name|Given Name)[:\s]+([A-Z\s]+)", re.IGNORECASE)
NAME_LINE = re.compile(r"[A-Z\s,.-]+")
NOT_NAME_CHARS = re.compile(r"[^A-Z\s]")

MONTHS = {
    "jan": "01", "feb": "02", "mar": "03", "apr": "04", "may": "05", "jun": "06",
    "jul": "07", "aug": "08", "sep": "09", "oct": "10", "nov": "11", "dec": "12",
}

NAME_FIELDS = ("surname", "firstname", "middlename")


def normalize_date(value: str) -> str:
    """MM/DD/YYYY and DD Mon YYYY become YYYY-MM-DD; anything else is returned as is."""
    if re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        return value

    mdy = re.fullmatch(r"(\d{2})/(\d{2})/(\d{4})", value)
    if mdy:
        return f"{mdy.group(3)}-{mdy.group(1)}-{mdy.group(2)}"

    dmy = re.fullmatch(r"(\d{2})\s+([A-Za-z]+)\s+(\d{4})", value)
    if dmy:
        month = MONTHS.get(dmy.group(2)[:3].lower())
        if month:
            return f"{dmy.group(3)}-{month}-{dmy.group(1)}"

    return value


def _first_date(text: str) -> Optional[str]:
    for pattern in DOB_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return None


def extract_data_from_ocr(raw_text: str, id_type: str) -> Dict[str, Optional[str]]:
    """
    Pull name, date of birth and ID number out of raw OCR text.

    Labelled fields win; when a name label is missing the longest
    all-uppercase lines are used instead.
    """
    result: Dict[str, Optional[str]] = {
        "surname": None,
        "firstname": None,
        "middlename": None,
        "dateofbirth": None,
        "id_number": None,
    }
    if not raw_text:
        return result

    lines = [line.strip() for line in raw_text.split("\n") if line.strip()]
    normalized = re.sub(r"\s+", " ", raw_text)

    # ID number
    pattern = ID_PATTERNS.get(id_type)
    if pattern:
        match = pattern.search(normalized)
        if match:
            result["id_number"] = match.group(0).upper()

    # Date of birth
    raw_dob = None
    label = DOB_LABEL.search(raw_text)
    if label:
        raw_dob = _first_date(label.group(1).strip())
    if not raw_dob:
        raw_dob = _first_date(normalized)
    if raw_dob:
        result["dateofbirth"] = normalize_date(raw_dob)

    # Names
    surname = SURNAME_LABEL.search(raw_text)
    if surname:
        result["surname"] = surname.group(1).strip().split("\n")[0].upper()
    firstname = FIRSTNAME_LABEL.search(raw_text)
    if firstname:
        result["firstname"] = firstname.group(1).strip().split("\n")[0].upper()

    if not result["surname"] or not result["firstname"]:
        candidates = sorted(
            (line for line in lines if NAME_LINE.fullmatch(line) and len(line) > 3),
            key=len,
            reverse=True,
        )
        if candidates:
            longest = candidates[0]
            if "," in longest:
                parts = longest.split(",")
                if not result["surname"]:
                    result["surname"] = parts[0].strip().upper()
                if not result["firstname"]:
                    result["firstname"] = parts[1].strip().upper()
            else:
                if not result["surname"] and len(candidates) > 1:
                    result["surname"] = longest.upper()
                if not result["firstname"]:
                    if result["surname"] == longest.upper():
                        result["firstname"] = candidates[1].upper() if len(candidates) > 1 else None
                    else:
                        result["firstname"] = longest.upper()

    for key, value in result.items():
        if value:
            value = value.strip()
            if key in NAME_FIELDS:
                value = NOT_NAME_CHARS.sub("", value)
            result[key] = value

    return result

