# checkout_service/services/qr_service.py
"""VietQR payload, QR image and hosted image URL.

Everything here is a pure function of its arguments: the same inputs always
produce byte-identical output, so payments can be regenerated or audited.
"""
import binascii
import unicodedata
from decimal import Decimal
from urllib.parse import quote_plus

import segno

from checkout_service.utils.money import round_whole
from checkout_service.utils.settings import VIETQR_IMAGE_BASE_URL, VIETQR_TEMPLATE

NAPAS_GUID = "A000000727"
CURRENCY_VND = "704"
COUNTRY_VN = "VN"
MAX_TEXT_LENGTH = 25


def _tlv(tag: str, value: str) -> str:
    return f"{tag}{len(value):02d}{value}"


def _format_amount(amount) -> str:
    return str(int(round_whole(amount)))


def normalize_text(text: str | None) -> str:
    """Upper-case ASCII rendition of a Vietnamese string (diacritics dropped)."""
    if not text:
        return ""
    # đ/Đ have no decomposition
    text = text.upper().replace("Đ", "D")
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def crc16_ccitt(data: str) -> str:
    # CRC-16/CCITT-FALSE: poly 0x1021, init 0xFFFF
    return f"{binascii.crc_hqx(data.encode('utf-8'), 0xFFFF):04X}"


def generate_vietqr_data(
    bank_code: str,
    account_number: str,
    account_name: str,
    amount,
    description: str | None,
) -> str:
    beneficiary = _tlv("00", NAPAS_GUID) + _tlv("01", bank_code) + _tlv("02", account_number)

    parts = [
        "000201",
        "010212",
        _tlv("38", beneficiary),
        _tlv("53", CURRENCY_VND),
    ]

    if Decimal(str(amount)) > 0:
        parts.append(_tlv("54", _format_amount(amount)))

    parts.append(_tlv("58", COUNTRY_VN))
    parts.append(_tlv("59", normalize_text(account_name)[:MAX_TEXT_LENGTH]))

    if description:
        parts.append(_tlv("62", _tlv("08", normalize_text(description)[:MAX_TEXT_LENGTH])))

    payload = "".join(parts) + "6304"
    return payload + crc16_ccitt(payload)


def generate_qr_code_image(data: str, module_size: int = 20) -> str:
    """PNG of the payload as a data URI (``data:image/png;base64,...``)."""
    return segno.make(data, error="m", micro=False).png_data_uri(scale=module_size)


def generate_vietqr_image_url(
    bank_code: str,
    account_number: str,
    account_name: str,
    amount,
    description: str | None,
) -> str:
    url = f"{VIETQR_IMAGE_BASE_URL}/{bank_code}-{account_number}-{VIETQR_TEMPLATE}.png"

    params = []
    if Decimal(str(amount)) > 0:
        params.append(f"amount={_format_amount(amount)}")
    if description:
        params.append(f"addInfo={quote_plus(description)}")
    if account_name:
        params.append(f"accountName={quote_plus(account_name)}")

    if params:
        url += "?" + "&".join(params)
    return url
