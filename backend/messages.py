"""Canned outreach messages for networking contacts and recruiters."""
from __future__ import annotations

from typing import NamedTuple

import config


class MessageTemplates(NamedTuple):
    linkedin_connect: str
    follow_up: str
    recruiter_email: str


def linkedin_connect(name: str, company: str, role: str = "", *, sender: str) -> str:
    described = f"a {role}" if role else "someone who works"
    return (
        f"Hi {name},\n"
        f"\n"
        f"I noticed your profile as {described} at {company}. I'm interested in learning "
        f"more about your experience there and would love to connect professionally.\n"
        f"\n"
        f"Best regards,\n"
        f"{sender}"
    )


def follow_up(name: str, company: str, role: str = "", *, sender: str) -> str:
    described = f"as a {role}" if role else ""
    return (
        f"Hi {name},\n"
        f"\n"
        f"Thank you for connecting with me! I really appreciate it.\n"
        f"\n"
        f"I'm particularly interested in your experience {described} at {company}. Would you "
        f"be open to a brief chat about your career path and insights into the industry?\n"
        f"\n"
        f"Looking forward to hearing from you!\n"
        f"\n"
        f"Best regards,\n"
        f"{sender}"
    )


def recruiter_email(name: str, company: str, role: str = "", *, sender: str, pitch: str) -> str:
    # Body lines keep their four-space indent.
    position = f"the {role} position" if role else "a position"
    return (
        f"Subject: Recently Applied for {role or 'Position'} at {company}\n"
        f"\n"
        f"    Dear {name},\n"
        f"\n"
        f"    I hope this email finds you well. My name is {sender}, and I'm reaching out "
        f"regarding my recent application for {position} at {company}.\n"
        f"\n"
        f"    {pitch} I believe my interdisciplinary background would be a great fit for "
        f"{company} and the role I've applied for.\n"
        f"\n"
        f"    I'm particularly excited about this opportunity and would appreciate the chance "
        f"to discuss how my skills and experience align with what you're looking for. "
        f"Would it be possible to schedule a brief conversation?\n"
        f"\n"
        f"    Thank you for your time and consideration. \n"
        f"\n"
        f"    Best regards,\n"
        f"    {sender}"
    )


def generate_messages(
    name: str,
    company: str,
    role: str = "",
    *,
    sender: str | None = None,
    pitch: str | None = None,
) -> MessageTemplates:
    """All three templates for one (name, company, role); role may be blank."""
    sender = sender if sender is not None else config.sender_name()
    pitch = pitch if pitch is not None else config.sender_pitch()
    role = role or ""
    return MessageTemplates(
        linkedin_connect=linkedin_connect(name, company, role, sender=sender),
        follow_up=follow_up(name, company, role, sender=sender),
        recruiter_email=recruiter_email(name, company, role, sender=sender, pitch=pitch),
    )
