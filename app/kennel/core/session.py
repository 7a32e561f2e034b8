"""Run-scoped shared resources.

A run (a sync or a logout drain) holds the mounted distribution point
and the management API session from start to finish. Both are released
on every exit path, including errors and an opt-out cancellation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import ExitStack, closing, contextmanager
from dataclasses import dataclass

from kennel.core.config import KennelConfig
from kennel.remote.client import ManagementClient, create_client
from kennel.remote.distribution import DistributionPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Session:
    """Resources available for the duration of a run."""

    config: KennelConfig
    client: ManagementClient
    distribution_point: DistributionPoint


@contextmanager
def open_session(config: KennelConfig) -> Iterator[Session]:
    """Mount the distribution point and connect to the management server.

    Raises:
        TransientResourceFailure: If either resource is unavailable.
    """
    with ExitStack() as stack:
        distribution_point = stack.enter_context(
            DistributionPoint(
                config.distribution_point,
                mount_command=config.mount_command,
                unmount_command=config.unmount_command,
            )
        )
        client = stack.enter_context(closing(create_client(config, distribution_point.path)))
        logger.debug("Session opened for %s", config.machine_name)
        yield Session(config=config, client=client, distribution_point=distribution_point)
        logger.debug("Session closing")
