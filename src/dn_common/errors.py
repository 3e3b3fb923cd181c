"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Account balance
  3xxx: Fundraising project
  6xxx: Payment verification and ledger
  9xxx: System

Each payment rejection carries its own message so donors get actionable
feedback instead of a generic failure.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid email or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


# --- 2xxx: Account balance ---

class BalanceNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Balance not found for user {user_id}", 404)


# --- 3xxx: Fundraising project ---

class ProjectNotFoundError(AppError):
    def __init__(self, project_id: int) -> None:
        super().__init__(3001, f"Fundraising project not found: {project_id}", 404)


# --- 6xxx: Payment ---

class InvalidPayloadError(AppError):
    def __init__(self, detail: str = "invalid_payload") -> None:
        super().__init__(6001, f"Invalid payment request: {detail}", 400)
        self.detail = detail


class InvalidSlipError(AppError):
    def __init__(self, detail: str = "") -> None:
        message = "The transfer slip could not be read"
        super().__init__(6002, f"{message}: {detail}" if detail else message, 400)


class InvalidReceiverError(AppError):
    def __init__(self, expected: str) -> None:
        super().__init__(
            6003,
            f"Wrong receiver account: transfers must be made to {expected} only",
            400,
        )


class VerificationFailedError(AppError):
    def __init__(self, reference: str) -> None:
        super().__init__(6004, f"Payment {reference} was not confirmed by the gateway", 400)


class UnauthorizedCallbackError(AppError):
    def __init__(self) -> None:
        super().__init__(6005, "Invalid callback secret", 401)


class PaymentAlreadyUsedError(AppError):
    def __init__(self, reference: str) -> None:
        super().__init__(6006, f"This payment slip has already been used: {reference}", 409)
        self.reference = reference


class InsufficientUpstreamDataError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6007, f"Payment provider response is incomplete: {detail}", 502)


class LedgerTransactionError(AppError):
    def __init__(self, reference: str) -> None:
        super().__init__(
            6008,
            f"Payment {reference} could not be recorded, please contact the foundation",
            500,
        )


class PayerNotFoundError(AppError):
    def __init__(self, email: str) -> None:
        super().__init__(6009, f"No registered donor with e-mail {email}", 400)


class QrPaymentNotFoundError(AppError):
    def __init__(self, reference: str) -> None:
        super().__init__(6010, f"QR payment not found: {reference}", 404)


class QrPaymentExpiredError(AppError):
    def __init__(self, reference: str) -> None:
        super().__init__(6011, f"QR code expired, please create a new one: {reference}", 410)


class UpstreamUnavailableError(AppError):
    def __init__(self, service: str) -> None:
        super().__init__(6012, f"{service} is unavailable, please try again later", 502)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
