#!/usr/bin/env python3
# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "httpx>=0.27",
#     "pyyaml>=6.0",
#     "rich>=13.0",
# ]
# ///
"""
Backlogr: manage Taiga user stories from the command line.

Usage:
    uv run backlogr.py list                        # List stories (default)
    uv run backlogr.py list --format json          # List stories as JSON
    uv run backlogr.py create --subject "Title"    # Create a story
    uv run backlogr.py wip 42                      # Move #42 to 'In progress'
    uv run backlogr.py done 42                     # Move #42 to 'Done'
    uv run backlogr.py delete 42                   # Delete #42

Credentials come from --username/--password/--project-name, the
TAIGA_USERNAME/TAIGA_PASSWORD/TAIGA_PROJECT_NAME environment variables,
or a .backlogr.yml file.
"""

from __future__ import annotations

import argparse
import json
import os
import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
import yaml
from rich.console import Console
from rich.markup import escape
from rich.text import Text

__version__ = "0.1.0"

console = Console(stderr=True)

DEFAULT_API_URL = "https://api.taiga.io/api/v1"
CONFIG_FILENAME = ".backlogr.yml"
PAGE_SIZE = 100


# =============================================================================
# Errors
# =============================================================================


class TaigaAPIError(Exception):
    """Base class for every failure the client reports."""

    prefix = "Taiga error"
    exit_code = 1

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"

    def hints(self) -> list[str]:
        return []


class AuthenticationError(TaigaAPIError):
    prefix = "Authentication failed"
    exit_code = 1

    def __init__(self, status_code: int, body: str):
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body

    def hints(self) -> list[str]:
        return [
            "💡 Troubleshooting authentication:",
            "   • Set environment variables:",
            "     export TAIGA_USERNAME=your_taiga_username",
            "     export TAIGA_PASSWORD=your_taiga_password",
            "   • Verify credentials by logging into Taiga web interface",
            "   • Check if your account is active and not locked",
        ]


class NetworkError(TaigaAPIError):
    """Transport-level failure: DNS, TLS, refused connection, timeout."""

    prefix = "Network error"
    exit_code = 1

    def hints(self) -> list[str]:
        lines = ["💡 Network/connection error:"]
        message = self.message.lower()
        if "connection" in message or "timeout" in message or "timed out" in message:
            lines += [
                "   • Check your internet connection",
                "   • Verify Taiga instance URL is accessible",
                "   • Try again - this might be a temporary issue",
            ]
        elif "dns" in message or "resolve" in message or "name or service" in message:
            lines += [
                "   • DNS resolution failed",
                "   • Check if the Taiga hostname is correct",
                "   • Try using an IP address instead of hostname",
            ]
        elif "ssl" in message or "tls" in message or "certificate" in message:
            lines += [
                "   • SSL/TLS certificate issue",
                "   • Check if your Taiga instance uses valid certificates",
            ]
        else:
            lines += [
                f"   • Network error: {self.message}",
                "   • Check your connection and try again",
            ]
        return lines


class StoryNotFoundError(TaigaAPIError):
    prefix = "User story not found"
    exit_code = 2

    def __init__(self, reference: int):
        super().__init__(f"User story with ref #{reference} not found.")
        self.reference = reference

    def hints(self) -> list[str]:
        return [
            f"💡 Story '#{self.reference}' not found. Try:",
            "   • backlogr list           # See all available stories",
            "   • backlogr create         # Create a new story",
            "   • Check for typos in the story reference",
            "   • Ensure you're in the correct project",
        ]


class ProjectNotFoundError(TaigaAPIError):
    prefix = "Project not found"
    exit_code = 3

    def __init__(self, project_name: str):
        super().__init__(
            f"Could not find a project named {project_name}. "
            "Please check the project name."
        )
        self.project_name = project_name

    def hints(self) -> list[str]:
        return [
            f"💡 Project '{self.project_name}' not found. Check:",
            "   • Project name spelling (case-sensitive)",
            "   • Your permissions to access this project",
            "   • If the project exists in your Taiga instance",
            "   • Set correct TAIGA_PROJECT_NAME environment variable",
        ]


class ApiError(TaigaAPIError):
    """Unexpected status from any endpoint other than /auth."""

    prefix = "API error"
    exit_code = 4

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def hints(self) -> list[str]:
        lines = ["💡 API error occurred:"]
        # Sniff the code when we have it, the message text otherwise
        text = str(self.status_code) if self.status_code else self.message
        if any(code in text for code in ("500", "502", "503")):
            lines += [
                "   • Taiga server appears to be experiencing issues",
                "   • Try again in a few minutes",
                "   • Contact your Taiga administrator if this persists",
            ]
        elif "401" in text:
            lines += [
                "   • This looks like an authentication issue",
                "   • Verify your credentials (username and password)",
            ]
        elif "403" in text:
            lines += [
                "   • Permission denied - you may not have access to this resource",
                "   • Contact your project administrator",
            ]
        elif "404" in text:
            lines += ["   • Resource not found - check project/story names"]
        else:
            lines += [
                "   • Check your network connection",
                "   • Verify your Taiga instance URL is correct",
                "   • Try the operation again",
            ]
        return lines


class DeserializationError(TaigaAPIError):
    """Response body does not have the shape we expect."""

    prefix = "Failed to parse response"
    exit_code = 5

    def hints(self) -> list[str]:
        return [
            "💡 Data parsing error:",
            "   • Taiga API response format may have changed",
            "   • This might indicate a version compatibility issue",
            f"   • Error details: {self.message}",
            "   • Try updating backlogr to the latest version",
            "   • Report this issue if it persists",
        ]


def report_error(error: TaigaAPIError, out: Console | None = None) -> None:
    """Print the error and its remediation hints."""
    out = out or console
    out.print(f"❌ {error}", markup=False, highlight=False)
    for line in error.hints():
        out.print(line, markup=False, highlight=False)


# =============================================================================
# Data Model
# =============================================================================


class Status(str, Enum):
    """Logical story status, independent of any project's workflow."""

    NEW = "new"
    WIP = "wip"
    DONE = "done"

    @property
    def label(self) -> str:
        return {"new": "New", "wip": "In Progress", "done": "Done"}[self.value]


@dataclass(frozen=True)
class Session:
    """Bearer token plus the origin it is valid for."""

    auth_token: str
    base_url: str


@dataclass
class UserStory:
    """A user story as returned by the list endpoint."""

    id: int
    ref: int
    subject: str
    status: int
    status_name: str
    created_date: str
    status_color: str = ""
    is_closed: bool = False

    @classmethod
    def from_api(cls, data: dict) -> UserStory:
        """Build from a /userstories list entry."""
        try:
            extra = data["status_extra_info"]
            return cls(
                id=_as_int(data["id"]),
                ref=_as_int(data["ref"]),
                subject=str(data["subject"]),
                status=_as_int(data["status"]),
                status_name=str(extra["name"]),
                created_date=str(data["created_date"]),
                status_color=str(extra.get("color") or ""),
                is_closed=bool(extra.get("is_closed", False)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DeserializationError(f"invalid user story entry: {e!r}") from e

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ref": self.ref,
            "subject": self.subject,
            "status": self.status,
            "created_date": self.created_date,
            "status_extra_info": {
                "color": self.status_color,
                "is_closed": self.is_closed,
                "name": self.status_name,
            },
        }


def _as_int(value: Any) -> int:
    # bool is an int subclass; a JSON true is never a valid id
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected integer, got {value!r}")
    return value


def _field(data: Any, key: str, kind: type = int) -> Any:
    """Pull one typed field out of a JSON object."""
    if not isinstance(data, dict) or key not in data:
        raise DeserializationError(f"missing field '{key}'")
    value = data[key]
    if kind is int:
        try:
            return _as_int(value)
        except TypeError as e:
            raise DeserializationError(f"field '{key}': {e}") from e
    if not isinstance(value, kind):
        raise DeserializationError(
            f"field '{key}': expected {kind.__name__}, got {value!r}"
        )
    return value


# =============================================================================
# Config Class
# =============================================================================


@dataclass
class Config:
    """Configuration loaded from .backlogr.yml"""

    api_url: str = DEFAULT_API_URL
    username: str = ""
    password: str = ""
    project_name: str = ""
    timeout: float = 30.0
    status_names: dict[str, str] = field(default_factory=dict)

    ENV_VARS = {
        "api_url": "TAIGA_API_URL",
        "username": "TAIGA_USERNAME",
        "password": "TAIGA_PASSWORD",
        "project_name": "TAIGA_PROJECT_NAME",
    }

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load config from .backlogr.yml, expanding ${ENV_VAR} references.

        Returns defaults when no path is given and no file is found.
        """
        if config_path is None:
            config_path = cls.find_config_file()
            if config_path is None:
                return cls()

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        content = cls._expand_env_vars(config_path.read_text())
        data = yaml.safe_load(content) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{config_path} must be a mapping")

        taiga = data.get("taiga") or {}
        statuses = data.get("statuses") or {}
        for section, value in (("taiga", taiga), ("statuses", statuses)):
            if not isinstance(value, dict):
                raise ValueError(f"'{section}' section must be a mapping")

        status_names = {}
        for key, name in statuses.items():
            key = str(key).lower()
            if key not in {s.value for s in Status}:
                raise ValueError(f"unknown status '{key}' in statuses section")
            status_names[key] = str(name)

        return cls(
            api_url=str(taiga.get("api_url") or DEFAULT_API_URL),
            username=str(taiga.get("username") or ""),
            password=str(taiga.get("password") or ""),
            project_name=str(taiga.get("project_name") or ""),
            timeout=float(taiga.get("timeout") or 30.0),
            status_names=status_names,
        )

    @classmethod
    def find_config_file(cls) -> Path | None:
        """Search current dir, then parent dirs for .backlogr.yml."""
        current = Path.cwd()
        for directory in [current, *current.parents]:
            config_path = directory / CONFIG_FILENAME
            if config_path.exists():
                return config_path
        return None

    @staticmethod
    def _expand_env_vars(content: str) -> str:
        """Expand ${ENV_VAR} patterns in content."""

        def replacer(match: re.Match) -> str:
            return os.environ.get(match.group(1), "")

        return re.sub(r"\$\{(\w+)\}", replacer, content)

    def apply_overrides(self, **overrides: str | None) -> Config:
        """Layer environment variables, then explicit values, over the file."""
        for name, env_var in self.ENV_VARS.items():
            value = os.environ.get(env_var)
            if value:
                setattr(self, name, value)
        for name, value in overrides.items():
            if value:
                setattr(self, name, value)
        return self

    def missing(self) -> list[str]:
        """Names of required settings that are still empty."""
        return [
            name
            for name in ("username", "password", "project_name")
            if not getattr(self, name)
        ]


# =============================================================================
# StatusResolver Class
# =============================================================================


class StatusResolver:
    """Map logical statuses to the names a Taiga workflow uses."""

    DEFAULT_STATUS_NAMES = {
        Status.NEW: "New",
        Status.WIP: "In progress",
        Status.DONE: "Done",
    }

    def __init__(self, status_names: dict[str, str] | None = None):
        self.status_names = dict(self.DEFAULT_STATUS_NAMES)
        for key, name in (status_names or {}).items():
            self.status_names[Status(key)] = name

    def display_name(self, status: Status) -> str:
        return self.status_names[status]

    def find(self, catalog: list[dict], status: Status) -> int:
        """Return the id of the catalog entry named for ``status``."""
        name = self.display_name(status)
        for entry in catalog:
            if _field(entry, "name", str) == name:
                return _field(entry, "id")
        raise ApiError(f"Could not find '{name}' status for project")


# =============================================================================
# TaigaClient Class
# =============================================================================


class TaigaClient:
    """REST API client for Taiga user stories.

    One instance per invocation. Every call either returns its parsed value
    or raises a TaigaAPIError; nothing is retried.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        statuses: StatusResolver | None = None,
        verbose: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.statuses = statuses or StatusResolver()
        self.verbose = verbose
        self.session: Session | None = None
        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        self._client = httpx.Client(timeout=timeout)

    def __enter__(self) -> TaigaClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json_data: dict | None = None,
    ) -> httpx.Response:
        """Make HTTP request to the Taiga API."""
        base_url = self.session.base_url if self.session else self.base_url
        url = f"{base_url}{path}"
        headers = dict(self.headers)
        if self.session:
            headers["Authorization"] = f"Bearer {self.session.auth_token}"
        try:
            response = self._client.request(
                method=method,
                url=url,
                params=params,
                headers=headers,
                json=json_data,
            )
        except (httpx.TransportError, httpx.InvalidURL) as e:
            raise NetworkError(f"{method} {url}: {e}") from e

        if self.verbose:
            console.print(
                f"[dim]{method} {escape(str(response.request.url))} -> {response.status_code}[/dim]"
            )
        return response

    @staticmethod
    def _expect(response: httpx.Response, status_code: int, context: str = "") -> None:
        """Raise ApiError unless the response carries ``status_code``."""
        if response.status_code != status_code:
            prefix = f"{context}. " if context else ""
            raise ApiError(
                f"{prefix}HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DeserializationError(f"invalid JSON body: {e}") from e

    # Session
    @classmethod
    def authenticate(
        cls,
        username: str,
        password: str,
        base_url: str = DEFAULT_API_URL,
        **kwargs: Any,
    ) -> TaigaClient:
        """Log in and return a client carrying the bearer token."""
        console.print("🔐 Authenticating with Taiga API...")
        client = cls(base_url, **kwargs)
        try:
            response = client._request(
                "POST",
                "/auth",
                json_data={"type": "normal", "username": username, "password": password},
            )
            if response.status_code != 200:
                raise AuthenticationError(response.status_code, response.text)

            token = _field(client._json(response), "auth_token", str)
        except TaigaAPIError:
            client.close()
            raise

        client.session = Session(auth_token=token, base_url=client.base_url)
        return client

    # Projects
    def get_current_user_id(self) -> int:
        response = self._request("GET", "/users/me")
        self._expect(response, 200)
        return _field(self._json(response), "id")

    def get_project_id(self, project_name: str) -> int:
        """Find the id of a project, by exact name, among the user's projects."""
        user_id = self.get_current_user_id()
        console.print(f"🔗 Connected to Taiga (User ID: [bold cyan]{user_id}[/bold cyan])")

        response = self._request("GET", "/projects", params={"member": user_id})
        self._expect(response, 200)
        projects = self._json(response)
        if not isinstance(projects, list):
            raise DeserializationError("expected a list of projects")

        for project in projects:
            if _field(project, "name", str) == project_name:
                project_id = _field(project, "id")
                console.print(
                    f"📂 Project: [bold bright_green]{escape(project_name)}[/bold bright_green] "
                    f"(ID: [bold bright_green]{project_id}[/bold bright_green])"
                )
                return project_id

        raise ProjectNotFoundError(project_name)

    # Stories
    def list_all_stories(self, project_id: int, page_size: int = PAGE_SIZE) -> list[UserStory]:
        """Fetch every story of a project, page by page.

        A page that comes back short of the page size is the last one. Any
        failing page aborts the whole listing.
        """
        stories: list[UserStory] = []
        page = 1
        while True:
            batch, has_more = self._list_stories_page(project_id, page, page_size)
            stories.extend(batch)
            if not has_more:
                return stories
            page += 1

    def _list_stories_page(
        self, project_id: int, page: int, page_size: int
    ) -> tuple[list[UserStory], bool]:
        response = self._request(
            "GET",
            "/userstories",
            params={"project": project_id, "page": page, "page_size": page_size},
        )
        self._expect(response, 200, "Fetching the list of stories failed")

        data = self._json(response)
        if not isinstance(data, list):
            raise DeserializationError("expected a list of user stories")
        stories = [UserStory.from_api(item) for item in data]

        count = _int_header(response, "x-pagination-count", 0)
        paginated_by = _int_header(response, "x-paginated-by", page_size)
        is_paginated = response.headers.get("x-paginated") == "true"

        return stories, is_paginated and count == paginated_by

    def get_story_id(self, project_id: int, reference: int) -> int:
        """Resolve a public ref (#42) to the story's internal id."""
        console.print(f"🔍 Looking up user story with ref #{reference} in project...")
        for story in self.list_all_stories(project_id):
            if story.ref == reference:
                return story.id
        raise StoryNotFoundError(reference)

    def get_status_id(self, project_id: int, status: Status) -> int:
        response = self._request(
            "GET", "/userstory-statuses", params={"project": project_id}
        )
        self._expect(response, 200, f"Unable to retrieve data for {project_id}")
        catalog = self._json(response)
        if not isinstance(catalog, list):
            raise DeserializationError("expected a list of statuses")
        return self.statuses.find(catalog, status)

    def retrieve_current_version(self, story_id: int) -> int:
        """Read the version a subsequent PATCH must send back."""
        response = self._request("GET", f"/userstories/{story_id}")
        self._expect(response, 200, f"Fetching user story {story_id} failed")
        return _field(self._json(response), "version")

    def create_story(
        self,
        project_id: int,
        subject: str,
        description: str = "",
        status: Status = Status.NEW,
    ) -> int:
        """Create a story and return its public ref."""
        status_id = self.get_status_id(project_id, status)
        payload = {
            "project": project_id,
            "subject": subject,
            "description": description,
            "status": status_id,
        }
        response = self._request("POST", "/userstories", json_data=payload)
        self._expect(response, 201, "Creating new story failed")
        return _field(self._json(response), "ref")

    def update_story_status(
        self, project_id: int, reference: int, story_id: int, status: Status
    ) -> None:
        """Move a story to ``status``.

        The version is read and then written back in a separate request.
        Another writer in between makes the server reject the PATCH, which
        surfaces as ApiError.
        """
        console.print(f"✅ Found user story ID: [bold cyan]{story_id}[/bold cyan]")
        console.print(f"🔍 Fetching '{escape(status.label)}' status ID for the project...")
        status_id = self.get_status_id(project_id, status)
        console.print(f"✅ '{escape(status.label)}' status ID is: [bold green]{status_id}[/bold green]")

        console.print(f"🔍 Retrieving current version of user story #{reference}...")
        version = self.retrieve_current_version(story_id)
        console.print(f"✅ Current version of user story #{reference} is {version}")

        console.print(f"🔄 Updating user story status to '{escape(status.label)}'...")
        response = self._request(
            "PATCH",
            f"/userstories/{story_id}",
            json_data={"status": status_id, "version": version},
        )
        self._expect(
            response, 200, f"Failed to update #{reference} to '{status.label}'"
        )
        console.print(
            f"✅ Successfully updated user story #{reference} to "
            f"'{escape(status.label)}' (version {version})"
        )

    def delete_story(self, story_id: int) -> None:
        response = self._request("DELETE", f"/userstories/{story_id}")
        self._expect(response, 204, "Failed to delete the story")

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()


def _int_header(response: httpx.Response, name: str, default: int) -> int:
    try:
        return int(response.headers.get(name, ""))
    except ValueError:
        return default


# =============================================================================
# UserStories Class (classification and display)
# =============================================================================


@dataclass
class UserStories:
    """Stories bucketed by the name of their status."""

    new: list[UserStory] = field(default_factory=list)
    wip: list[UserStory] = field(default_factory=list)
    done: list[UserStory] = field(default_factory=list)
    other: dict[str, list[UserStory]] = field(default_factory=dict)

    BUCKETS = {
        "New": "new",
        "In progress": "wip",
        "WIP": "wip",
        "Done": "done",
        "Ready": "done",
    }

    @classmethod
    def classify(cls, stories: list[UserStory]) -> UserStories:
        """Stable partition; unknown status names get their own bucket."""
        result = cls()
        for story in stories:
            bucket = cls.BUCKETS.get(story.status_name)
            if bucket:
                getattr(result, bucket).append(story)
            else:
                result.other.setdefault(story.status_name, []).append(story)
        return result

    def total_count(self) -> int:
        return (
            len(self.new)
            + len(self.wip)
            + len(self.done)
            + sum(len(v) for v in self.other.values())
        )


REF_STYLES = {
    "Done": "bold bright_green",
    "In progress": "bold bright_yellow",
    "New": "bold bright_blue",
}


def format_story(story: UserStory) -> Text:
    text = Text("#")
    text.append(f"{story.ref:>2}", style=REF_STYLES.get(story.status_name, "bold bright_white"))
    text.append(f" {story.subject:<40}")
    return text


def render_stories(stories: UserStories, out: Console | None = None) -> None:
    """Print stories grouped by bucket, skipping empty ones."""
    out = out or Console()
    out.print(f"📋 Total user stories: ({stories.total_count()})\n", markup=False)

    sections = [
        ("🆕 New", stories.new),
        ("🔄 Work in Progress", stories.wip),
        ("✅ Done", stories.done),
    ]
    sections += [(f"📌 {name}", items) for name, items in stories.other.items()]

    for title, items in sections:
        if not items:
            continue
        out.print(f"{title} ({len(items)})", markup=False)
        for story in items:
            out.print(Text("  ") + format_story(story))
        out.print()


# =============================================================================
# CLI Commands
# =============================================================================


def cmd_create(client: TaigaClient, project_id: int, args: argparse.Namespace) -> None:
    """Create a new user story."""
    status = Status(args.status)
    reference = client.create_story(
        project_id, args.subject, args.description or "", status
    )
    console.print(
        f"✅ Created story: \"{escape(args.subject)}\" "
        f"(#[bold bright_green]{reference}[/bold bright_green])"
    )


def cmd_wip(client: TaigaClient, project_id: int, args: argparse.Namespace) -> None:
    """Move a user story to 'In progress'."""
    story_id = client.get_story_id(project_id, args.story_ref)
    client.update_story_status(project_id, args.story_ref, story_id, Status.WIP)


def cmd_done(client: TaigaClient, project_id: int, args: argparse.Namespace) -> None:
    """Move a user story to 'Done'."""
    story_id = client.get_story_id(project_id, args.story_ref)
    client.update_story_status(project_id, args.story_ref, story_id, Status.DONE)


def cmd_delete(client: TaigaClient, project_id: int, args: argparse.Namespace) -> None:
    """Delete a user story."""
    story_id = client.get_story_id(project_id, args.story_ref)
    client.delete_story(story_id)
    console.print(
        "✅ Successfully deleted user story "
        f"(#[bold bright_green]{args.story_ref}[/bold bright_green])"
    )


def cmd_list(client: TaigaClient, project_id: int, args: argparse.Namespace) -> None:
    """List user stories."""
    stories = client.list_all_stories(project_id)
    if args.format == "json":
        print(json.dumps([story.to_dict() for story in stories], indent=2))
    else:
        render_stories(UserStories.classify(stories))


COMMANDS = {
    "create": cmd_create,
    "wip": cmd_wip,
    "done": cmd_done,
    "delete": cmd_delete,
    "list": cmd_list,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="backlogr",
        description="Manage Taiga user stories from the command line",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--username", help="Taiga username (env: TAIGA_USERNAME)")
    parser.add_argument("--password", help="Taiga password (env: TAIGA_PASSWORD)")
    parser.add_argument(
        "--project-name", help="Taiga project name (env: TAIGA_PROJECT_NAME)"
    )
    parser.add_argument(
        "--api-url",
        help=f"Taiga API base URL (env: TAIGA_API_URL, default: {DEFAULT_API_URL})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help=f"Config file path (default: {CONFIG_FILENAME})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    create_parser = subparsers.add_parser("create", help="Create a new user story")
    create_parser.add_argument("--subject", required=True, help="Story subject")
    create_parser.add_argument("--description", help="Story description")
    create_parser.add_argument(
        "--status",
        choices=[s.value for s in Status],
        default=Status.NEW.value,
        help="Initial status (default: new)",
    )

    for name, help_text in (
        ("wip", "Update a user story to 'In progress'"),
        ("done", "Update a user story to 'Done'"),
        ("delete", "Delete a user story"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("story_ref", type=int, metavar="ID", help="Story ref, e.g. 42")

    list_parser = subparsers.add_parser("list", help="List user stories")
    list_parser.add_argument(
        "-f",
        "--format",
        choices=["pretty", "json"],
        default="pretty",
        help="Output format (default: pretty)",
    )

    return parser


def run(config: Config, args: argparse.Namespace) -> None:
    """Authenticate, resolve the project and dispatch one command."""
    client = TaigaClient.authenticate(
        config.username,
        config.password,
        base_url=config.api_url,
        timeout=config.timeout,
        statuses=StatusResolver(config.status_names),
        verbose=args.verbose,
    )
    with client:
        project_id = client.get_project_id(config.project_name)
        COMMANDS[args.command](client, project_id, args)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        args.command = "list"
        args.format = "pretty"

    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        parser.error(str(e))
    except (yaml.YAMLError, ValueError) as e:
        parser.error(f"Invalid config file: {e}")

    config.apply_overrides(
        api_url=args.api_url,
        username=args.username,
        password=args.password,
        project_name=args.project_name,
    )
    missing = config.missing()
    if missing:
        flags = ", ".join("--" + name.replace("_", "-") for name in missing)
        parser.error(f"missing required settings: {flags}")

    try:
        run(config, args)
    except TaigaAPIError as e:
        report_error(e)
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
