"""SOAP request rendering and reply parsing for the Viera control port."""

import re
from typing import Dict, Optional, Tuple

from .crypto import encrypt_payload

# Actions that never go through the encrypted envelope
ALWAYS_PLAINTEXT = frozenset({
    "X_GetEncryptSessionId",
    "X_DisplayPinCode",
    "X_RequestAuth",
})

# Actions whose reply carries an encrypted X_EncResult
ENCRYPTED_REPLY_ACTIONS = frozenset({
    "X_GetEncryptSessionId",
    "X_EncryptedCommand",
})

ENVELOPE_TEMPLATE = (
    '<?xml version="1.0" encoding="utf-8"?> '
    ' <s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/"'
    ' s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/"> '
    '<s:Body> <u:{action} xmlns:u="urn:{urn}"> {parameters} </u:{action}>'
    ' </s:Body> </s:Envelope>'
)


def render_envelope(action: str, urn: str, parameters: str) -> str:
    """Build the SOAP 1.1 envelope for ``action`` on service ``urn``."""
    return ENVELOPE_TEMPLATE.format(action=action, urn=urn, parameters=parameters)


def soap_headers(host: str, urn: str, action: str) -> Dict[str, str]:
    """HTTP headers for a SOAP POST.

    Args:
        host: ``address:port`` of the TV
        urn: Service URN without the ``urn:`` prefix
        action: SOAP action name
    """
    return {
        "Host": host,
        "Content-Type": 'text/xml; charset="utf-8"',
        "SOAPACTION": f'"urn:{urn}#{action}"',
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
        "Accept": "text/xml",
    }


def render_encrypted_command(
    session,
    app_id: str,
    action: str,
    urn: str,
    parameters: str,
) -> Tuple[str, str]:
    """Wrap an action in the ``X_EncryptedCommand`` envelope.

    The caller advances ``session.seq_num`` before rendering; the current
    value is embedded as-is.

    Args:
        session: Active session (id, seq_num, key, iv, hmac_key)
        app_id: Application id obtained when pairing
        action: Original action name
        urn: Original service URN
        parameters: Original action parameters

    Returns:
        Tuple of (outer action, outer parameters)
    """
    inner = (
        f"<X_SessionId>{session.id}</X_SessionId>"
        f"<X_SequenceNumber>{session.seq_num:08d}</X_SequenceNumber>"
        f'<X_OriginalCommand> <u:{action} xmlns:u="urn:{urn}">{parameters}'
        f"</u:{action}> </X_OriginalCommand>"
    )
    enc_info = encrypt_payload(inner, session.key, session.iv, session.hmac_key)
    return (
        "X_EncryptedCommand",
        f"<X_ApplicationId>{app_id}</X_ApplicationId> <X_EncInfo>{enc_info}</X_EncInfo>",
    )


def extract(tag: str, xml: str) -> Optional[str]:
    """Return the text of the first ``tag`` element, or None.

    Namespace prefixes and attributes are ignored. Nested markup is returned
    verbatim.
    """
    pattern = rf"<(?:[\w.-]+:)?{re.escape(tag)}(?:\s[^>]*)?>(.*?)</(?:[\w.-]+:)?{re.escape(tag)}\s*>"
    match = re.search(pattern, xml, re.DOTALL)
    if match is None:
        return None
    return match.group(1).strip()
