"""
Microsoft Graph API calendar source.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import SourceUnavailable, UnknownAttendee
from ..domain.models import BusySlot

logger = logging.getLogger(__name__)


class GraphCalendarSource:
    """
    Calendar source backed by Microsoft Graph.

    Reads ``/users/{id}/calendar/events`` for each attendee. The access token is
    acquired elsewhere and handed in ready to use.
    """

    GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"

    # Calendar not found or not shared with the signed-in user
    UNRESOLVABLE_STATUS_CODES = {403, 404}

    def __init__(
        self,
        access_token: str,
        timezone: str = "Asia/Tokyo",
        endpoint: str | None = None,
        request_timeout: float = 30.0,
    ):
        """
        Initialize the Graph calendar source.

        Args:
            access_token: Valid Microsoft Graph access token
            timezone: IANA timezone busy slots are converted into
            endpoint: Optional Graph base URL override
            request_timeout: Per-request timeout in seconds
        """
        self.timezone = timezone
        self.endpoint = (endpoint or self.GRAPH_API_ENDPOINT).rstrip("/")
        self.request_timeout = request_timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Prefer": f'outlook.timezone="{timezone}"',
        }

    async def fetch_busy_slots(
        self,
        attendee_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BusySlot]:
        """Fetch the attendee's events in a worker thread."""
        return await asyncio.to_thread(
            self.get_busy_slots, attendee_id, range_start, range_end
        )

    def get_busy_slots(
        self,
        attendee_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BusySlot]:
        """
        Get busy slots for one user, following result pages.

        Raises:
            UnknownAttendee: If the user or their calendar is not accessible
            SourceUnavailable: If Graph cannot be reached or returns an error
        """
        url: str | None = f"{self.endpoint}/users/{attendee_id}/calendar/events"
        params: Dict[str, str] | None = {
            "$filter": (
                f"start/dateTime lt '{_graph_datetime(range_end)}' "
                f"and end/dateTime gt '{_graph_datetime(range_start)}'"
            ),
            "$select": "id,subject,start,end,showAs,isCancelled",
            "$orderby": "start/dateTime",
        }

        busy_slots: List[BusySlot] = []

        while url:
            data = self._get(url, params, attendee_id)
            busy_slots.extend(self._parse_events(data, attendee_id))
            # nextLink already carries the query string
            url = data.get("@odata.nextLink")
            params = None

        logger.debug("Fetched %d busy slot(s) for %s", len(busy_slots), attendee_id)
        return busy_slots

    def _get(self, url: str, params: Dict[str, str] | None, attendee_id: str) -> Dict[str, Any]:
        try:
            response = requests.get(
                url,
                headers=self.headers,
                params=params,
                timeout=self.request_timeout
            )
        except requests.exceptions.RequestException as e:
            raise SourceUnavailable(f"Failed to reach Microsoft Graph: {e}") from e

        if response.status_code in self.UNRESOLVABLE_STATUS_CODES:
            raise UnknownAttendee(
                attendee_id,
                f"calendar not accessible (HTTP {response.status_code})"
            )

        try:
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            raise SourceUnavailable(f"Microsoft Graph returned an error: {e}") from e
        except ValueError as e:
            raise SourceUnavailable(f"Microsoft Graph returned invalid JSON: {e}") from e

    def _parse_events(self, response_data: Dict[str, Any], attendee_id: str) -> List[BusySlot]:
        """
        Parse an events page into busy slots.

        Response format:
        {
            "value": [
                {
                    "subject": "Weekly sync",
                    "showAs": "busy",
                    "isCancelled": false,
                    "start": {"dateTime": "2024-02-12T09:00:00.0000000", "timeZone": "Asia/Tokyo"},
                    "end": {"dateTime": "2024-02-12T10:00:00.0000000", "timeZone": "Asia/Tokyo"}
                }
            ],
            "@odata.nextLink": "..."
        }
        """
        busy_slots: List[BusySlot] = []

        for event in response_data.get("value", []):
            if event.get("isCancelled") or str(event.get("showAs", "busy")).lower() == "free":
                continue

            try:
                start = self._parse_datetime(event["start"])
                end = self._parse_datetime(event["end"])
            except (KeyError, TypeError, ValueError) as e:
                raise SourceUnavailable(
                    f"Could not parse event {event.get('id', '?')} for {attendee_id}: {e}"
                ) from e

            # InvalidInterval propagates for events ending before they start
            busy_slots.append(
                BusySlot(
                    start=start,
                    end=end,
                    label=event.get("subject") or "",
                    attendee_id=attendee_id,
                )
            )

        return busy_slots

    def _parse_datetime(self, value: Dict[str, str]) -> DateTime:
        """
        Parse a Graph dateTimeTimeZone object into the configured timezone.
        """
        dt = pendulum.parse(value["dateTime"], tz=value.get("timeZone") or "UTC")

        if isinstance(dt, DateTime):
            return dt.in_timezone(self.timezone)

        raise ValueError(f"Could not parse datetime: {value['dateTime']}")


def _graph_datetime(dt: DateTime) -> str:
    return pendulum.instance(dt).in_timezone("UTC").format("YYYY-MM-DD[T]HH:mm:ss")
