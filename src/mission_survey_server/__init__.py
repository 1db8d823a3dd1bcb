"""mission_survey_server: FastAPI REST API for the survey SDK.

Hosts one ``SurveyStateMachine`` per survey session and exposes its
transitions, plus read-only reference data (teams, questions).
"""
