"""
Ports through which client components talk to the user interface.

The defaults record what was shown/navigated so a caller (a view, a test)
can read it back; a real front-end adapter would forward them.
"""

import logging

logger = logging.getLogger(__name__)


class Toast:
    __slots__ = ("title", "description", "variant")

    def __init__(self, title: str, description: str = "", variant: str = "default"):
        self.title = title
        self.description = description
        self.variant = variant

    def __repr__(self):
        return f"<Toast {self.variant}: {self.title}>"


class Toaster:
    def __init__(self):
        self.toasts = []

    def toast(self, title: str, description: str = "", variant: str = "default") -> Toast:
        item = Toast(title, description, variant)
        self.toasts.append(item)
        log = logger.warning if variant == "destructive" else logger.info
        log("toast %s: %s", title, description)
        return item

    def error(self, title: str, description: str = "") -> Toast:
        return self.toast(title, description, variant="destructive")

    @property
    def last(self) -> Toast | None:
        return self.toasts[-1] if self.toasts else None

    def titles(self) -> list:
        return [t.title for t in self.toasts]


class Navigator:
    """
    `navigate` is an in-app route change; `redirect` is a full-page
    load that discards client state.
    """

    def __init__(self, current_path: str = "/"):
        self.current_path = current_path
        self.history = []
        self.redirects = []

    def navigate(self, path: str, state: dict | None = None, replace: bool = False):
        self.history.append((path, state or {}, replace))
        self.current_path = path

    def redirect(self, url: str):
        self.redirects.append(url)
        self.current_path = url

    @property
    def last_location(self) -> str | None:
        if self.history:
            return self.history[-1][0]
        return None
