# mock_exam/__init__.py
"""
Mock Exam Helper
AI-generated certification mock exams with batch question generation and personalized feedback
"""

__version__ = "1.0.0"
__description__ = "Certification mock exams with AI-powered question generation"
