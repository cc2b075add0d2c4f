"""
Тексты уведомлений и ответов бота (HTML parse mode).

Пользовательский текст всегда экранируется и обрезается.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from aiogram import html

from rescue.db.models import Chat, PaymentSubmission

CHAT_PREVIEW_LIMIT = 200
NOTE_PREVIEW_LIMIT = 100
REPLY_PREVIEW_LIMIT = 100
LIST_MESSAGE_LIMIT = 50
LIST_NOTE_LIMIT = 30

COMMANDS_HELP = (
    "/chats - View recent chats\n"
    "/reply [chat_id] [message] - Reply to a chat\n"
    "/payments - View recent gift card submissions\n"
)


def truncate(text: Optional[str], limit: int, *, ellipsis: bool = False) -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + ("..." if ellipsis else "")


def format_time(value: Optional[datetime]) -> str:
    if value is None:
        value = datetime.now()
    return value.strftime("%Y-%m-%d %H:%M")


def welcome_text() -> str:
    return (
        "Welcome to Rescue Paws Admin Bot! Here are available commands:\n\n"
        f"{COMMANDS_HELP}"
        "/help - Show this help message"
    )


def help_text() -> str:
    return (
        "Available commands:\n\n"
        f"{COMMANDS_HELP}"
        "/start - Show welcome message\n"
        "/help - Show this help"
    )


def format_chat_notification(chat: Chat) -> str:
    last = chat.last_message
    preview = truncate(last["text"], CHAT_PREVIEW_LIMIT) if last else "No message"
    return (
        "📩 <b>New Chat Message</b>\n"
        f"👤 <b>From:</b> {html.quote(chat.name)}\n"
        f"📧 <b>Email:</b> {html.quote(chat.email)}\n"
        f"💬 <b>Message:</b> {html.quote(preview)}\n"
        f"⏰ <b>Time:</b> {format_time(chat.updated_at)}\n"
        f"🆔 <b>Chat ID:</b> <code>{chat.id}</code>\n\n"
        f"<i>Use /reply {chat.id} [message] to reply</i>"
    )


def format_submission_notification(submission: PaymentSubmission) -> str:
    note = truncate(submission.note, NOTE_PREVIEW_LIMIT) if submission.note else "No additional note"
    method = submission.payment_method or "Gift card"
    return (
        "🎁 <b>New Gift Card Submission</b>\n"
        f"👤 <b>From:</b> {html.quote(submission.name)}\n"
        f"📧 <b>Email:</b> {html.quote(submission.email)}\n"
        f"💰 <b>Amount:</b> ${submission.amount}\n"
        f"💳 <b>Method:</b> {html.quote(method)}\n"
        f"📝 <b>Note:</b> {html.quote(note)}\n"
        f"⏰ <b>Time:</b> {format_time(submission.created_at)}\n"
        f"🆔 <b>Submission ID:</b> <code>{submission.id}</code>\n\n"
        "<i>Payment received! Review the gift card image.</i>"
    )


def format_status_notification(submission: PaymentSubmission) -> str:
    return (
        "🔄 <b>Gift Card Status Updated</b>\n\n"
        f"👤 From: {html.quote(submission.name)}\n"
        f"💰 Amount: ${submission.amount}\n"
        f"📊 Status: {submission.status.value.upper()}\n"
        f"🆔 ID: <code>{submission.id}</code>"
    )


def format_admin_reply_notification(chat: Chat, text: str) -> str:
    return (
        "📤 <b>Admin Reply Sent</b>\n\n"
        f"👤 To: {html.quote(chat.name)}\n"
        f"📧 Email: {html.quote(chat.email)}\n"
        f"💬 Message: {html.quote(truncate(text, REPLY_PREVIEW_LIMIT))}"
    )


def format_chat_list(chats: Iterable[Chat]) -> str:
    lines = ["📋 <b>Recent Chats</b>\n"]
    for index, chat in enumerate(chats, start=1):
        last = chat.last_message
        preview = truncate(last["text"], LIST_MESSAGE_LIMIT, ellipsis=True) if last else "No messages"
        lines.append(
            f"{index}. <b>{html.quote(chat.name)}</b> ({html.quote(chat.email)})\n"
            f"   💬 {html.quote(preview)}\n"
            f"   🆔 <code>{chat.id}</code>\n"
        )
    return "\n".join(lines)


def format_submission_list(submissions: Iterable[PaymentSubmission]) -> str:
    lines = ["💰 <b>Recent Gift Card Submissions</b>\n"]
    for index, submission in enumerate(submissions, start=1):
        note = truncate(submission.note, LIST_NOTE_LIMIT) if submission.note else "No note"
        lines.append(
            f"{index}. <b>{html.quote(submission.name)}</b> ({html.quote(submission.email)})\n"
            f"   💰 Amount: ${submission.amount}\n"
            f"   📝 {html.quote(note)}\n"
            f"   📊 {submission.status.value}\n"
            f"   🆔 <code>{submission.id}</code>\n"
            f"   ⏰ {submission.created_at.strftime('%Y-%m-%d')}\n"
        )
    return "\n".join(lines)
