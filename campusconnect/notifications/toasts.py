"""Transient messages shown once on the next rendered page."""
from dataclasses import dataclass


@dataclass(frozen=True)
class Toast:
    title: str
    description: str = ""
    variant: str = "default"  # "default" or "destructive"


class Toaster:
    """Pending toasts for one browser."""

    def __init__(self):
        self._toasts: list[Toast] = []

    def __len__(self) -> int:
        return len(self._toasts)

    @property
    def pending(self) -> list[Toast]:
        return list(self._toasts)

    def push(self, title: str, description: str = "", variant: str = "default") -> Toast:
        toast = Toast(title, description, variant)
        self._toasts.append(toast)
        return toast

    def error(self, title: str, description: str = "") -> Toast:
        return self.push(title, description, "destructive")

    def drain(self) -> list[Toast]:
        toasts, self._toasts = self._toasts, []
        return toasts
