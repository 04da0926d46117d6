"""Pydantic schemas validating manager event attributes at the decode boundary."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _ManagerEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class ParkedCallEvent(_ManagerEvent):
    """Attributes of a ``ParkedCall`` event."""

    exten: str = Field(description="Parking slot the call occupies.")
    channel: str | None = Field(default=None, description="Parked channel name.")
    timeout: str | None = Field(default=None, description="Seconds until the park times out.")
    duration: str | None = Field(default=None, description="Seconds the call has waited.")
    calleridnum: str | None = Field(default=None, description="Caller ID number.")
    calleridname: str | None = Field(default=None, description="Caller ID name.")
    connectedlinenum: str | None = Field(
        default=None, description="Number of the party that parked the call."
    )
    connectedlinename: str | None = Field(
        default=None, description="Name of the party that parked the call."
    )


class QueueSummaryEvent(_ManagerEvent):
    """Attributes of a ``QueueSummary`` event."""

    queue: str = Field(description="Queue identifier.")
    loggedin: str | None = Field(default=None, description="Members logged into the queue.")
    available: str | None = Field(default=None, description="Members available for calls.")
    callers: str | None = Field(default=None, description="Callers waiting in the queue.")
    holdtime: str | None = Field(default=None, description="Average hold time in seconds.")
    talktime: str | None = Field(default=None, description="Average talk time in seconds.")
    longestholdtime: str | None = Field(
        default=None, description="Longest current hold time in seconds."
    )


class QueueParamsEvent(_ManagerEvent):
    """Attributes of a ``QueueParams`` event."""

    queue: str = Field(description="Queue identifier.")
    max: str | None = Field(default=None, description="Maximum callers allowed to wait.")
    strategy: str | None = Field(default=None, description="Member ring strategy.")
    calls: str | None = Field(default=None, description="Callers currently waiting.")
    holdtime: str | None = Field(default=None, description="Average hold time in seconds.")
    talktime: str | None = Field(default=None, description="Average talk time in seconds.")
    completed: str | None = Field(default=None, description="Completed call count.")
    abandoned: str | None = Field(default=None, description="Abandoned call count.")
    servicelevel: str | None = Field(default=None, description="Service level threshold.")
    servicelevelperf: str | None = Field(
        default=None, description="Service level performance percentage."
    )
    weight: str | None = Field(default=None, description="Queue weight.")


class QueueMemberEvent(_ManagerEvent):
    """Attributes of a ``QueueMember`` event."""

    queue: str = Field(description="Queue the member belongs to.")
    name: str = Field(description="Member display name.")
    location: str | None = Field(default=None, description="Member interface location.")
    stateinterface: str | None = Field(
        default=None, description="Device whose state drives the member status."
    )
    membership: str | None = Field(default=None, description="static, dynamic or realtime.")
    penalty: str | None = Field(default=None, description="Member penalty.")
    callstaken: str | None = Field(default=None, description="Calls answered by the member.")
    lastcall: str | None = Field(default=None, description="Epoch of the member's last call.")
    status: str | None = Field(default=None, description="Numeric device state code.")
    paused: str | None = Field(default=None, description="'1' when the member is paused.")


class QueueEntryEvent(_ManagerEvent):
    """Attributes of a ``QueueEntry`` event describing a waiting caller."""

    queue: str = Field(description="Queue the caller waits in.")
    position: str | None = Field(default=None, description="Position in the queue.")
    channel: str | None = Field(default=None, description="Caller channel name.")
    calleridnum: str | None = Field(default=None, description="Caller ID number.")
    calleridname: str | None = Field(default=None, description="Caller ID name.")
    wait: str | None = Field(default=None, description="Seconds the caller has waited.")
