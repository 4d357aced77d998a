from __future__ import annotations
import enum


class Status(enum.StrEnum):
    submitted = "SUBMITTED"
    rejected = "REJECTED"
    phone_screen = "PHONE_SCREEN"
    remote_interview = "REMOTE_INTERVIEW"
    on_site_interview = "ON_SITE_INTERVIEW"


class Platform(enum.StrEnum):
    linkedin = "linkedin"
    greenhouse = "greenhouse"
