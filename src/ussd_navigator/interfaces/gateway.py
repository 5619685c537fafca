"""Normalized request/response shapes exchanged with the USSD gateway."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UssdRequest:
    """One leg of a USSD interaction as posted by the gateway."""

    session_id: str
    msisdn: str = ""
    user_id: str = ""
    network: str = ""
    user_data: str = ""
    new_session: bool = False


@dataclass(frozen=True)
class UssdResponse:
    """Reply returned to the gateway."""

    session_id: str
    user_id: str
    msisdn: str
    message: str
    continue_session: bool
