"""
Pydantic schemas for authentication and profiles.
"""

from pydantic import BaseModel
from typing import Literal, Optional, Union


class StudentSignUp(BaseModel):
    email: str
    password: str
    name: str
    register_number: str
    department: str
    section: str


class TeacherSignUp(BaseModel):
    email: str
    password: str
    name: str


class UserLogin(BaseModel):
    email: str
    password: str


class StudentProfile(BaseModel):
    id: str
    user_id: str
    name: str
    email: str
    register_number: Optional[str] = None
    department: Optional[str] = None
    section: Optional[str] = None


class TeacherProfile(BaseModel):
    id: str
    user_id: str
    name: str
    email: str
    department: Optional[str] = None
    designation: Optional[str] = None


class Profile(BaseModel):
    role: Literal["student", "teacher"]
    data: Union[StudentProfile, TeacherProfile]
