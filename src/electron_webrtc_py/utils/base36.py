import string

_DIGITS = string.digits + string.ascii_lowercase

def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError(f"cannot encode negative value {value}")
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_DIGITS[rem])
    return "".join(reversed(out))
