"""
AJK CRM - Auth models
Single admin account, credentials come from the environment.
"""

from pydantic import BaseModel


class AdminLogin(BaseModel):
    username: str
    password: str


class SessionInfo(BaseModel):
    authenticated: bool = True
    username: str = ""
    expires_at: str = ""
