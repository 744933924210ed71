# ringoshop/api/utils/params.py
from ringoshop.errors import ValidationFailed


def int_field(data: dict, key: str) -> int:
    """Whole number from a JSON body: an int or a digit-only string, nothing fractional."""
    raw = data.get(key)
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        digits = text[1:] if text[:1] in ("-", "+") else text
        if digits.isdigit():
            return int(text)
    raise ValidationFailed(f"{key} must be an integer", fields={key: "must be an integer"})
