"""Start an agent from markup-style ``data-*`` attributes.

Hosts that embed the agent through a tag (an HTML ``<script>`` element, a
template include) pass the tag's attributes here. Missing ``data-endpoint``
or ``data-site-id`` leaves the page untracked; anything else produces an
initialised agent. The handle is returned to the caller and never stored
globally.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from lookout.agent import Agent, create_agent
from lookout.config import AgentConfig
from lookout.errors import AgentConfigError
from lookout.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    from lookout.page import PageEnvironment

logger = get_logger(__name__)


def bootstrap_from_attributes(
    attributes: cabc.Mapping[str, str | None],
    page: PageEnvironment,
    **dependencies: typ.Any,  # noqa: ANN401 - forwarded to create_agent
) -> Agent | None:
    """Create and initialise an agent from tag attributes.

    Parameters
    ----------
    attributes
        Attribute names mapped to their values. Boolean opt-outs such as
        ``data-no-vitals`` count when present, whatever their value.
    page
        The host page.
    **dependencies
        Keyword arguments for :func:`lookout.agent.create_agent`
        (``scheduler``, ``http_client``, ``beacon``, ``clock``).

    Returns
    -------
    Agent | None
        The initialised agent, or ``None`` when the attributes do not name
        an endpoint and site.

    """
    try:
        config = AgentConfig.from_attributes(attributes)
    except AgentConfigError as exc:
        if "data-debug" in attributes:
            log_debug(logger, "agent not started from attributes: %s", exc)
        return None
    agent = create_agent(config, page, **dependencies)
    agent.init()
    return agent
