import logging
import re


class Tracer:
    """
    Debug trace gate shared by the config resolver and the policy applicators.

    Topics (``cfg``, ``pm``, ...) come from the words of ``TLP_DEBUG``. Once a
    topic is enabled it stays enabled for the rest of the run. ``notrace``
    suppresses every record regardless of the enabled topics.
    """

    def __init__(self, notrace: bool = False) -> None:
        self.notrace: bool = notrace
        self._topics: set[str] = set()

    def enable(self, topic: str) -> None:
        self._topics.add(topic)

    def enable_from(self, debug_value: str | None) -> None:
        """Enable every topic named in a TLP_DEBUG value."""
        if debug_value:
            for topic in re.findall(r"\w+", debug_value):
                self.enable(topic)

    def is_enabled(self, topic: str) -> bool:
        return not self.notrace and topic in self._topics

    def debug(self, topic: str, msg: str, *args) -> None:
        if self.is_enabled(topic):
            logging.getLogger(f"pytlp.{topic}").debug(msg, *args)
