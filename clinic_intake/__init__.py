"""
Clinic Intake API: patient intake, AI triage summaries and doctor responses.
"""
