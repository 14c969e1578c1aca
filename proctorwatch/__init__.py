"""Proctorwatch - real-time exam proctoring anomaly detection service"""

__version__ = "1.0.0"
