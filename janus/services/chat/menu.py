"""
Chat Menu Rendering

Texts and inline keyboards shown by the chat ingress. The Switch button
is labelled with the target OS, which is always the family the agent is
NOT currently running.
"""

from datetime import datetime

from janus.common.commands import Command, OSFamily
from janus.common.host import HostFacts
from janus.common.timestamp import format_display_time

# Callback data carried by the inline buttons
CALLBACK_SHUTDOWN = Command.SHUTDOWN.value
CALLBACK_SWITCH = Command.SWITCH_OS.value
CALLBACK_STATUS = "status"

BOT_COMMANDS: list[tuple[str, str]] = [
    ("start", "Show the interactive control menu"),
    ("menu", "Show the interactive control menu"),
    ("status", "Show system status"),
    ("shutdown", "Shut the machine down"),
    ("switch", "Reboot into the other operating system"),
    ("help", "Show help"),
]

UNAUTHORIZED_TEXT = "❌ Unauthorized user"
UNKNOWN_COMMAND_TEXT = "❓ Unknown command, use /help for help"

_MARKDOWN_SPECIAL = ("\\", "_", "*", "`", "[")


def escape_markdown(text: str) -> str:
    """Escape characters that would break legacy Markdown parsing"""
    for char in _MARKDOWN_SPECIAL:
        text = text.replace(char, "\\" + char)
    return text


def shutdown_label(os_family: OSFamily) -> str:
    return f"🛑 Shutdown ({os_family.value})"


def switch_label(os_family: OSFamily) -> str:
    return f"🔄 Switch to {os_family.other.display_name}"


def status_label() -> str:
    return "📊 System status"


def main_menu_keyboard(facts: HostFacts) -> dict:
    """Inline keyboard with one button per row"""
    return {
        "inline_keyboard": [
            [{"text": shutdown_label(facts.os), "callback_data": CALLBACK_SHUTDOWN}],
            [{"text": switch_label(facts.os), "callback_data": CALLBACK_SWITCH}],
            [{"text": status_label(), "callback_data": CALLBACK_STATUS}],
        ]
    }


def menu_text(facts: HostFacts) -> str:
    return (
        "🖥️ *Welcome to Janus Control Panel*\n\n"
        "*Current System Info:*\n"
        f"• OS: {facts.os.value}\n"
        "• Status: 🟢 Running\n"
        f"• Private IP: {escape_markdown(facts.private_ip or 'unknown')}\n"
        f"• User: {escape_markdown(facts.user or 'unknown')}"
    )


def help_text() -> str:
    lines = ["🤖 *Janus Help*", "", "*Commands:*"]
    lines.extend(f"• /{command} - {escape_markdown(description)}" for command, description in BOT_COMMANDS)
    return "\n".join(lines)


def status_text(facts: HostFacts, now: datetime | None = None) -> str:
    return (
        "📊 *System Status*\n\n"
        f"*OS:* {facts.os.value}\n"
        f"*Private IP:* {escape_markdown(facts.private_ip or 'unknown')}\n"
        f"*User:* {escape_markdown(facts.user or 'unknown')}\n"
        "*Status:* Running\n"
        f"*Time:* {format_display_time(now)}"
    )


def command_sent_text(command: Command, facts: HostFacts) -> str:
    if command is Command.SHUTDOWN:
        return "💤 Shutdown command sent, the system will power off shortly..."
    return f"🔄 Switch command sent, the next boot will enter {facts.os.other.display_name}..."


def command_failed_text(command: Command, reason: str) -> str:
    return f"❌ Failed to send {command.value} command: {reason}"
