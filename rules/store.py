"""
Rule Store - Keyword patterns and their responses
=================================================

This module keeps the ordered collection of keyword rules the bot
answers with, along with the compiled regular expression for each
pattern. Every edit rewrites the JSON rule file:

    {
      "keywords": [
        {"regExp": "hello", "response": "world"}
      ]
    }

Rules are matched in insertion order; the first match wins.
"""

import json
import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Tuple

from core.exceptions import InvalidPatternError, RuleStoreError
from core.logging import get_logger

logger = get_logger("rules.store")


PATTERN_FLAGS = re.IGNORECASE | re.MULTILINE


class UpsertOutcome(Enum):
    """Result of storing a rule."""
    ADDED = "added"
    UPDATED = "updated"


@dataclass
class Rule:
    """
    A keyword rule.

    Attributes:
        pattern (str): Regular expression matched against messages
        response (str): Text posted when the pattern matches
    """
    pattern: str
    response: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to the rule file representation."""
        return {"regExp": self.pattern, "response": self.response}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Rule':
        """Create from the rule file representation."""
        return cls(pattern=str(data["regExp"]), response=str(data["response"]))


def compile_pattern(pattern: str) -> Pattern:
    """
    Compile a keyword pattern.

    Raises:
        InvalidPatternError: If the pattern is not a valid regular expression
    """
    try:
        return re.compile(pattern, PATTERN_FLAGS)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e))


class RuleStore:
    """
    Ordered keyword rules backed by a JSON file.

    Compiled patterns live in a cache keyed by pattern text that is
    updated on every write, so matching never recompiles.

    Persistence is fire-and-forget: a mutation snapshots the rules and
    hands the write to a single worker thread, so files land in the
    order the edits were made. Write failures are logged and the
    in-memory rules stay authoritative.

    Example:
        store = RuleStore("keywords.json")
        store.load()

        store.upsert("hello", "world")
        rule = store.match("well HELLO there")
        print(rule.response)  # world
    """

    def __init__(self, path: Optional[str] = None, persist_in_background: bool = True):
        """
        Initialize the store.

        Args:
            path: Rule file location. None keeps rules in memory only.
            persist_in_background: Write the rule file on a worker thread
        """
        self.path = Path(path) if path else None
        self.persist_in_background = persist_in_background

        self._rules: List[Rule] = []
        self._matchers: Dict[str, Pattern] = {}
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: List[Future] = []

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, pattern: str) -> bool:
        return pattern in self._matchers

    def load(self) -> None:
        """
        Load rules from the rule file.

        A missing file (or no file configured) leaves the store empty.

        Raises:
            RuleStoreError: If the file is not valid JSON or has the wrong shape
        """
        if self.path is None:
            logger.warning("Keyword config file not configured, rules will not be saved")
            return

        if not self.path.exists():
            logger.warning(f"Keyword config file {self.path} not found, starting with no rules")
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise RuleStoreError(f"Malformed keyword config file: {e}", {"path": str(self.path)})
        except OSError as e:
            raise RuleStoreError(f"Failed to read keyword config file: {e}", {"path": str(self.path)})

        if not isinstance(data, dict) or not isinstance(data.get("keywords", []), list):
            raise RuleStoreError(
                "Keyword config file must contain a 'keywords' list",
                {"path": str(self.path)},
            )

        rules: List[Rule] = []
        matchers: Dict[str, Pattern] = {}
        for index, entry in enumerate(data.get("keywords", [])):
            try:
                rule = Rule.from_dict(entry)
            except (KeyError, TypeError):
                raise RuleStoreError(
                    f"Keyword entry {index} needs regExp and response",
                    {"path": str(self.path), "entry": entry},
                )

            if rule.pattern in matchers:
                # Keep the first position, take the later response.
                for existing in rules:
                    if existing.pattern == rule.pattern:
                        existing.response = rule.response
                logger.warning(f"Duplicate keyword pattern {rule.pattern!r} in {self.path}")
                continue

            matchers[rule.pattern] = compile_pattern(rule.pattern)
            rules.append(rule)

        with self._lock:
            self._rules = rules
            self._matchers = matchers

        logger.info(f"Loaded {len(rules)} keyword rule(s) from {self.path}")

    def match(self, text: str) -> Optional[Rule]:
        """
        Find the first rule whose pattern matches the text.

        Args:
            text: Message text

        Returns:
            Matching Rule, or None
        """
        with self._lock:
            candidates = [(rule, self._matchers[rule.pattern]) for rule in self._rules]

        for rule, regex in candidates:
            logger.debug(f"Regexp: {regex.pattern} Response: {rule.response} Message: {text}")
            if regex.search(text):
                return rule
        return None

    def find(self, pattern: str) -> Optional[Rule]:
        """Get a rule by its exact pattern text."""
        for rule in self._rules:
            if rule.pattern == pattern:
                return rule
        return None

    def upsert(self, pattern: str, response: str) -> UpsertOutcome:
        """
        Add a rule, or replace the response of an existing one.

        An existing rule keeps its position; new rules go last.

        Args:
            pattern: Regular expression text
            response: Reply text

        Returns:
            UpsertOutcome.UPDATED or UpsertOutcome.ADDED

        Raises:
            InvalidPatternError: If the pattern does not compile. The store
                is left unchanged.
        """
        regex = compile_pattern(pattern)

        with self._lock:
            self._matchers[pattern] = regex
            existing = self.find(pattern)
            if existing is not None:
                existing.response = response
                outcome = UpsertOutcome.UPDATED
            else:
                self._rules.append(Rule(pattern=pattern, response=response))
                outcome = UpsertOutcome.ADDED
            self._schedule_persist(self._snapshot())

        logger.info(f"Keyword rule {outcome.value}: {pattern!r}")
        return outcome

    def remove(self, pattern: str) -> bool:
        """
        Remove the rule with this exact pattern text.

        Returns:
            True if a rule was removed. False leaves the file untouched.
        """
        with self._lock:
            rule = self.find(pattern)
            if rule is None:
                return False
            self._rules.remove(rule)
            self._matchers.pop(pattern, None)
            self._schedule_persist(self._snapshot())

        logger.info(f"Keyword rule removed: {pattern!r}")
        return True

    def get_all_rules(self) -> Tuple[Rule, ...]:
        """Get a snapshot of all rules in match order."""
        with self._lock:
            return tuple(Rule(pattern=r.pattern, response=r.response) for r in self._rules)

    def persist(self) -> bool:
        """
        Write all rules to the rule file now.

        Returns:
            True if the file was written
        """
        with self._lock:
            return self._write(self._snapshot())

    def flush(self) -> None:
        """Wait for pending background writes."""
        with self._lock:
            pending, self._pending = self._pending, []
        for future in pending:
            future.result()

    def close(self) -> None:
        """Flush pending writes and stop the writer thread."""
        self.flush()
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def _snapshot(self) -> Dict[str, Any]:
        return {"keywords": [rule.to_dict() for rule in self._rules]}

    def _schedule_persist(self, snapshot: Dict[str, Any]) -> None:
        # Caller holds self._lock, so writes are queued in mutation order.
        if self.path is None:
            return

        if not self.persist_in_background:
            self._write(snapshot)
            return

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rule_writer")

        self._pending = [f for f in self._pending if not f.done()]
        self._pending.append(self._executor.submit(self._write, snapshot))

    def _write(self, snapshot: Dict[str, Any]) -> bool:
        if self.path is None:
            return False

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Error writing keyword file {self.path}: [{e.errno}] {e.strerror or e}")
            return False

        logger.info("Keyword file updated.")
        return True
