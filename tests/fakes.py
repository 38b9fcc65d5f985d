"""In-memory test doubles shared by the test modules."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from calories_bot.adapters.telegram_client import BotSetupClient, Sender
from calories_bot.domain.estimates import EstimateResult
from calories_bot.services.estimator import Estimator, VisionClient


@dataclass
class FakeClock:
    """Settable clock for code that takes a `clock` callable."""

    now: datetime = field(default_factory=lambda: datetime(2024, 1, 1, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class SentMessage:
    message_id: int
    chat_id: int
    text: str
    reply_markup: dict | None = None


@dataclass
class FakeSender(Sender, BotSetupClient):
    """Fake Telegram client that records everything it is asked to do."""

    messages: list[SentMessage] = field(default_factory=list)
    deleted: list[tuple[int, int]] = field(default_factory=list)
    callbacks: list[tuple[str, str | None]] = field(default_factory=list)
    downloads: list[str] = field(default_factory=list)
    file_content: bytes = b"\xff\xd8\xff fake-jpeg"
    fail_download: bool = False
    fail_send: bool = False
    fail_delete: bool = False
    commands: list[dict[str, str]] | None = None
    menu_button: dict[str, object] | None = None
    webhook_url: str | None = None
    _next_message_id: int = 100

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> int:
        if self.fail_send:
            raise RuntimeError("sendMessage failed")
        self._next_message_id += 1
        self.messages.append(
            SentMessage(self._next_message_id, chat_id, text, reply_markup)
        )
        return self._next_message_id

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        if self.fail_delete:
            raise RuntimeError("deleteMessage failed")
        self.deleted.append((chat_id, message_id))

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        self.callbacks.append((callback_query_id, text))

    async def download_file_bytes(self, file_id: str) -> bytes:
        self.downloads.append(file_id)
        if self.fail_download:
            raise RuntimeError("getFile failed")
        return self.file_content

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        self.commands = commands

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        self.menu_button = menu_button

    async def set_webhook(self, url: str) -> None:
        self.webhook_url = url

    @property
    def texts(self) -> list[str]:
        return [message.text for message in self.messages]


@dataclass
class FakeEstimator(Estimator):
    """Estimator returning a fixed result."""

    result: EstimateResult = field(
        default_factory=lambda: EstimateResult(
            calories=450,
            confidence="high",
            items=["Chicken", "Rice"],
            reasoning="Standard plate",
        )
    )
    calls: list[tuple[bytes, str]] = field(default_factory=list)

    async def estimate(self, image_bytes: bytes, mime_type: str) -> EstimateResult:
        self.calls.append((image_bytes, mime_type))
        return self.result


@dataclass
class FailingEstimator(Estimator):
    """Estimator that always fails like an unreachable model."""

    calls: int = 0

    async def estimate(self, image_bytes: bytes, mime_type: str) -> EstimateResult:
        self.calls += 1
        raise RuntimeError("model unavailable")


@dataclass
class FakeVisionClient(VisionClient):
    """Vision client returning a fixed payload and recording the request."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "calories": 320,
            "confidence": "Medium",
            "items": ["Toast", "Egg"],
            "reasoning": "Breakfast plate",
        }
    )
    requests: list[dict[str, object]] = field(default_factory=list)

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.requests.append(
            {
                "model": model,
                "reasoning_effort": reasoning_effort,
                "store": store,
                "image_data_url": image_data_url,
                "schema": schema,
                "prompt": prompt,
            }
        )
        return self.payload
