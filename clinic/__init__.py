"""
Clinic management API: doctor/receptionist accounts, bearer tokens and patient records.
"""
__version__ = "1.0.0"
