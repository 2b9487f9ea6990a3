from __future__ import annotations

from typing import List, Tuple

from rnci.config import FormValues
from rnci.dsl import action
from rnci.model import Step


SLACK_ACTION = "rtCamp/action-slack-notify@v2"
DISCORD_ACTION = "Ilshidur/action-discord@0.3.2"


def channels(config: FormValues) -> Tuple[str, ...]:
    opts = config.advanced_options
    if not opts.notifications:
        return ()
    kind = opts.effective_notification_type
    if kind == "both":
        return ("slack", "discord")
    return (kind,)


def notification_secrets(config: FormValues) -> Tuple[str, ...]:
    names = {"slack": "SLACK_WEBHOOK", "discord": "DISCORD_WEBHOOK"}
    return tuple(names[c] for c in channels(config))


def notification_steps(config: FormValues) -> List[Step]:
    out: List[Step] = []
    for channel in channels(config):
        if channel == "slack":
            out.append(
                action(
                    "📣 Send Slack notification",
                    SLACK_ACTION,
                    if_="always()",
                    env={
                        "SLACK_COLOR": "${{ job.status }}",
                        "SLACK_TITLE": "Mobile build ${{ job.status }}",
                        "SLACK_MESSAGE": "${{ github.repository }} build #${{ github.run_number }}",
                    },
                )
            )
        else:
            out.append(
                action(
                    "📣 Send Discord notification",
                    DISCORD_ACTION,
                    if_="always()",
                    with_={"args": "${{ github.repository }} build #${{ github.run_number }}: ${{ job.status }}"},
                )
            )
    return out
