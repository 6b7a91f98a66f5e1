"""Kitchen display error taxonomy"""

from typing import Optional


class KitchenError(Exception):
    """Base class for kitchen display errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransitionRejected(KitchenError):
    """A mutation violates the order/item transition rules; nothing was applied"""


class OrderNotFound(KitchenError):
    """The order is not on the kitchen screen"""

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class OrderServiceError(KitchenError):
    """The order service answered with an error or could not be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OrderServiceTimeout(OrderServiceError):
    """The order service did not answer within the request bound"""


class InvalidOrderPayload(OrderServiceError):
    """The order service returned data that does not match the order schema"""


class InterpretationError(KitchenError):
    """The speech-to-intent service could not interpret a transcript"""


class SpeechRecognitionError(KitchenError):
    """A speech recognition engine reported an error"""

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(message or f"Speech recognition error: {code}")
        self.code = code

    @property
    def permission_denied(self) -> bool:
        return self.code in ("not-allowed", "service-not-allowed")
