"""Вспомогательные объекты тестов."""

from typing import Optional

from rescue.services.notifications import Photo

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f"
    b"\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


class RecordingNotifier:
    """Запоминает уведомления вместо отправки в Telegram."""

    def __init__(self):
        self.sent: list[tuple[str, Optional[Photo]]] = []

    async def notify(self, text: str, photo: Optional[Photo] = None) -> None:
        self.sent.append((text, photo))


class FailingNotifier:
    """Notifier, который всегда падает."""

    def __init__(self):
        self.calls = 0

    async def notify(self, text: str, photo: Optional[Photo] = None) -> None:
        self.calls += 1
        raise RuntimeError("telegram is down")


def giftcard_form(**overrides):
    data = {
        "name": "Jane",
        "email": "jane@example.com",
        "amount": "50",
        "note": "for Rex",
        "paymentMethod": "Amazon gift card",
    }
    data.update(overrides)
    return data


def image_file(field: str = "giftCardImage", content: bytes = PNG_BYTES, filename: str = "card.png",
               content_type: str = "image/png"):
    return {field: (filename, content, content_type)}
