"""Abstract transport protocol for STOMP text frames."""

from abc import ABC, abstractmethod

from game.messaging.stomp import Frame, decode_frame, encode_frame


class TransportProtocol(ABC):
    """
    Abstract interface for the client side of the game channel.

    This abstraction allows the connection manager to be tested
    without a real WebSocket. One STOMP frame travels per text message.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the underlying socket. Raises ConnectionError on failure.
        """
        ...

    @abstractmethod
    async def send_text(self, data: str) -> None:
        """
        Send one text message. Raises ConnectionError if the socket is gone.
        """
        ...

    @abstractmethod
    async def receive_text(self) -> str:
        """
        Receive one text message. Raises ConnectionError if the socket is gone.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the socket. Safe to call on an already-closed transport.
        """
        ...

    async def send_frame(self, frame: Frame) -> None:
        await self.send_text(encode_frame(frame))

    async def receive_frame(self) -> Frame | None:
        """
        Receive and decode one frame; None for a heart-beat.

        Raises FrameError if the message is not a valid frame.
        """
        return decode_frame(await self.receive_text())
