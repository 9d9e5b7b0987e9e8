"""Client-side interest form state machine.

Mirrors what the landing page form does in the browser: per-field validation
on blur, full validation before any network call, and a submit that always
resolves to state the UI can read instead of raising.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from interest_service.shared.interest.broadcast import SubmissionBroadcast
from interest_service.shared.interest.exceptions import DuplicateError, RateLimitError
from interest_service.shared.interest.input_validation import FIELD_VALIDATORS, normalize_email

SUBMIT_PATH = "/api/interest/submit"
NETWORK_ERROR_MESSAGE = "Network error. Please try again."
SUBMIT_FAILED_MESSAGE = "Failed to submit interest form"


class FormState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


def _initial_form_data() -> Dict[str, Any]:
    return {"name": "", "email": "", "subscribedToUpdates": False}


class InterestForm:
    """
    State for one interest form.

    idle -> validating -> submitting -> success | error; editing any field
    from any state goes back to idle.
    """

    def __init__(
        self,
        base_url: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
        broadcast: Optional[SubmissionBroadcast] = None,
        public_key: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client
        self.broadcast = broadcast
        self.public_key = public_key
        self.timeout = timeout

        self.form_data: Dict[str, Any] = _initial_form_data()
        self.errors: Dict[str, str] = {}
        self.state = FormState.IDLE

    @property
    def is_submitting(self) -> bool:
        return self.state is FormState.SUBMITTING

    @property
    def is_success(self) -> bool:
        return self.state is FormState.SUCCESS

    def update_field(self, field: str, value: Any) -> None:
        if field not in self.form_data:
            raise KeyError(f"Unknown form field: {field}")
        if field == "subscribedToUpdates":
            value = bool(value)
        else:
            value = "" if value is None else str(value)
        self.form_data[field] = value
        self.errors.pop(field, None)
        self.state = FormState.IDLE

    def validate_field(self, field: str) -> bool:
        """Validate one field (on blur). Fields without rules always pass."""
        validator = FIELD_VALIDATORS.get(field)
        if validator is None:
            return True
        message = validator(self.form_data.get(field))
        if message:
            self.errors[field] = message
        else:
            self.errors.pop(field, None)
        return message is None

    def validate_form(self) -> bool:
        self.state = FormState.VALIDATING
        # Validate every field so all errors show up at once
        results = [self.validate_field(field) for field in FIELD_VALIDATORS]
        valid = all(results)
        if not valid:
            self.state = FormState.ERROR
        return valid

    async def submit(self) -> Optional[Dict[str, Any]]:
        """
        Validate and submit the form.

        Returns the parsed API response, a synthesized failure response for
        network errors, or None when local validation stopped the submit.
        """
        if not self.validate_form():
            return None

        self.state = FormState.SUBMITTING
        self.errors = {}

        payload = {
            "name": self.form_data["name"].strip(),
            "email": normalize_email(self.form_data["email"]),
            "subscribedToUpdates": bool(self.form_data["subscribedToUpdates"]),
        }

        try:
            response = await self._post(payload)
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logging.error(f"Interest form submit failed: {str(e)}")
            self.errors = {"submit": NETWORK_ERROR_MESSAGE}
            self.state = FormState.ERROR
            return {"success": False, "error": "Network error", "message": NETWORK_ERROR_MESSAGE}

        if not isinstance(result, dict):
            result = {"success": False, "error": "Invalid response", "message": SUBMIT_FAILED_MESSAGE}

        if response.status_code == 201 and result.get("success"):
            self.state = FormState.SUCCESS
            if self.broadcast is not None:
                self.broadcast.publish(result.get("data"))
            return result

        field_errors = result.get("errors")
        if response.status_code == 400 and isinstance(field_errors, dict) and field_errors:
            self.errors = {k: str(v) for k, v in field_errors.items()}
        elif response.status_code == 409:
            self.errors = {"submit": DuplicateError.default_message}
        elif response.status_code == 429:
            self.errors = {"submit": RateLimitError.default_message}
        else:
            self.errors = {"submit": SUBMIT_FAILED_MESSAGE}
        self.state = FormState.ERROR
        return result

    def reset(self) -> None:
        self.form_data = _initial_form_data()
        self.errors = {}
        self.state = FormState.IDLE

    def clear_errors(self) -> None:
        self.errors = {}

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        url = f"{self.base_url}{SUBMIT_PATH}"
        headers = {"Content-Type": "application/json"}
        if self.public_key:
            headers["apikey"] = self.public_key

        if self.http_client is not None:
            return await self.http_client.post(url, json=payload, headers=headers, timeout=self.timeout)
        async with httpx.AsyncClient() as client:
            return await client.post(url, json=payload, headers=headers, timeout=self.timeout)
