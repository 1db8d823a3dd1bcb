"""Enumerations for roles and survey views."""

import enum

from mission_survey.errors import AnswerTypeError


class Role(str, enum.Enum):
    """Respondent role.

    The value is the stable key used in storage keys and question buckets;
    ``label`` is the display name written to the remote ``role`` column.
    """

    MISSIONARY = "missionary"
    LEADER = "leader"
    TEAM_MEMBER = "team_member"

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]

    @property
    def requires_team(self) -> bool:
        """Only short-term team members pick a team before the form."""
        return self is Role.TEAM_MEMBER


_ROLE_LABELS: dict[Role, str] = {
    Role.MISSIONARY: "선교사",
    Role.LEADER: "인솔자",
    Role.TEAM_MEMBER: "단기선교 팀원",
}


def parse_role(value: "str | Role") -> Role:
    """Resolve a role from its key or its display label."""
    if isinstance(value, Role):
        return value
    for role in Role:
        if value in (role.value, role.label):
            return role
    raise AnswerTypeError(f"Unknown role: {value!r}")


class ViewState(str, enum.Enum):
    """Survey navigation states.

    Forward transitions:
        landing -> role_selection        (start)
        landing -> survey_form           (start, resuming restored answers)
        role_selection -> survey_form    (role without a team)
        role_selection -> team_selection (team_member)
        team_selection -> survey_form    (team chosen)
        survey_form -> submitting        (submit passed validation)
        submitting -> success            (remote write confirmed)
        submitting -> survey_form        (remote write failed, rolled back)
        success -> role_selection        (restart)
    """

    LANDING = "landing"
    ROLE_SELECTION = "role_selection"
    TEAM_SELECTION = "team_selection"
    SURVEY_FORM = "survey_form"
    SUBMITTING = "submitting"
    SUCCESS = "success"
