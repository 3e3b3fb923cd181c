"""Permissive receiver matching for OCR'd bank slips.

A slip passes when EITHER the receiver name OR the receiver account matches.
Vendor OCR data is noisy; requiring both rejects genuine donations.
"""

from src.dn_payment.domain.models import ReceiverIdentity


def name_matches(name_th: str | None, name_en: str | None, expected: ReceiverIdentity) -> bool:
    if name_th and (
        name_th == expected.name_th or expected.name_th_partial in name_th
    ):
        return True
    if name_en and (
        name_en == expected.name_en or expected.name_en_partial in name_en
    ):
        return True
    return False


def account_matches(
    account_number: str | None, account_type: str | None, expected: ReceiverIdentity
) -> bool:
    if not account_number or not account_type:
        return False
    if account_type != expected.account_type:
        return False
    return account_number == expected.account_number or any(
        fragment in account_number for fragment in expected.account_fragments
    )


def receiver_matches(
    name_th: str | None,
    name_en: str | None,
    account_number: str | None,
    account_type: str | None,
    expected: ReceiverIdentity,
) -> bool:
    return name_matches(name_th, name_en, expected) or account_matches(
        account_number, account_type, expected
    )
