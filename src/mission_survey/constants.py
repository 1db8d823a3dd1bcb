"""Survey constants shared across the SDK.

These values are referenced by the state machine, draft store, validation
and question catalog.  The draft expiration window and the scale range are
fixed policy and deliberately not read from the environment.
"""

# Inclusive bounds of a scale (Likert) answer.
SCALE_MIN = 1
SCALE_MAX = 7

# Drafts older than this are treated as absent and purged on read.
DRAFT_EXPIRATION_MS = 24 * 60 * 60 * 1000

# Local storage key layout.  The team part falls back to "general" for
# roles without a team.
DRAFT_KEY_PREFIX = "survey_draft_"
SUBMITTED_KEY_PREFIX = "survey_submitted_"
GENERAL_TEAM_KEY = "general"

# Structured "other" choice of a multi-select question.  The option list
# names it with OTHER_OPTION_LABEL; older records encode it as a string
# starting with LEGACY_OTHER_PREFIX followed by the free text.
OTHER_OPTION_ID = "other"
OTHER_OPTION_LABEL = "기타"
LEGACY_OTHER_PREFIX = "기타:"

# Bucket name for questions shared by the leader and team_member roles.
COMMON_ROLE_KEY = "common"

# Respondent name used when neither the form nor the identity provides one.
ANONYMOUS_RESPONDENT = "Anonymous"

# Placeholder written by older clients for "no team"; never matched to a team.
SELF_TEAM_MARKER = "self"

# User-facing messages (Korean UI).
MSG_SUBMIT_FAILED = "제출 중 오류가 발생했습니다. 다시 시도해주세요."
MSG_INCOMPLETE = "작성하지 않은 문항이 {count}개 있습니다. 확인해주세요."

# Remote table names.
TABLE_EVALUATIONS = "mission_evaluations"
TABLE_QUESTIONS = "survey_questions"
TABLE_TEAMS = "mission_teams"
TABLE_ADMIN_USERS = "admin_users"
