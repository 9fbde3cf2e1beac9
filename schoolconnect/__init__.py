"""
Student-Employer Connect
A school job board with student, employer and admin roles.

Architecture:
- SQL: accounts, profiles, job postings, applications, interviews
- MongoDB GridFS: resume files
- Resend: applicant and login-code emails
"""

__version__ = "1.0.0"
