"""Constants and mappings for the CFB fantasy points engine."""

# Week 1 starts August 24 (UTC midnight); earlier dates are week 0
SEASON_START_MONTH = 8
SEASON_START_DAY = 24

# Week numbers
WEEK_ZERO = 0
WEEK_CONF_CHAMPS = 15
WEEK_RIVALRY = 16
WEEK_BOWLS = 17
WEEK_CFP_FIRST_ROUND = 18
WEEK_CFP_QUARTERFINAL = 19
WEEK_CFP_SEMIFINAL = 20
WEEK_CHAMPIONSHIP = 21
WEEK_HEISMAN = 22
MAX_WEEK = WEEK_HEISMAN
MAX_GAME_WEEK = WEEK_CHAMPIONSHIP
POSTSEASON_START = WEEK_CONF_CHAMPS

# Week labels, presentation only
LEADERBOARD_WEEK_LABELS = {
    WEEK_BOWLS: 'Bowls',
    WEEK_CFP_FIRST_ROUND: 'CFP',
    WEEK_CFP_QUARTERFINAL: 'Natty',
}

SCHEDULE_WEEK_LABELS = {
    WEEK_CONF_CHAMPS: 'Conf Champ',
    WEEK_RIVALRY: 'Week 16',
    WEEK_BOWLS: 'Bowl',
}

# Game status values
STATUS_SCHEDULED = 'scheduled'
STATUS_LIVE = 'live'
STATUS_COMPLETED = 'completed'

# Upstream game state -> game status
GAME_STATE_STATUS = {
    'pre': STATUS_SCHEDULED,
    'in': STATUS_LIVE,
    'post': STATUS_COMPLETED,
}

# Playoff rounds
ROUND_FIRST = 'first_round'
ROUND_QUARTERFINAL = 'quarterfinal'
ROUND_SEMIFINAL = 'semifinal'
ROUND_CHAMPIONSHIP = 'championship'

PLAYOFF_ROUND_WEEKS = {
    ROUND_FIRST: WEEK_CFP_FIRST_ROUND,
    ROUND_QUARTERFINAL: WEEK_CFP_QUARTERFINAL,
    ROUND_SEMIFINAL: WEEK_CFP_SEMIFINAL,
    ROUND_CHAMPIONSHIP: WEEK_CHAMPIONSHIP,
}

# Event bonus types
BONUS_CONF_CHAMPIONSHIP_WIN = 'conf_championship_win'
BONUS_CONF_CHAMPIONSHIP_LOSS = 'conf_championship_loss'
BONUS_BOWL_APPEARANCE = 'bowl_appearance'
BONUS_CFP_FIRST_ROUND = 'cfp_first_round'
BONUS_CFP_QUARTERFINAL = 'cfp_quarterfinal'
BONUS_CFP_SEMIFINAL = 'cfp_semifinal'
BONUS_HEISMAN = 'heisman'
BONUS_CHAMPIONSHIP_WIN = 'championship_win'
BONUS_CHAMPIONSHIP_LOSS = 'championship_loss'

# Conference that never produces a conference game
INDEPENDENT_CONFERENCE = 'Independent'

# Ranks at or above this are the upstream "unranked" sentinel
UNRANKED_SENTINEL = 99

# Ranked-opponent tiers
REGULAR_TOP_TIER_MAX_RANK = 10
REGULAR_LOWER_TIER_MAX_RANK = 25
POSTSEASON_TOP_TIER_MAX_RANK = 12

OVER_50_THRESHOLD = 50

# Cached aggregates differing by more than this are considered drifted
RECONCILE_EPSILON = 0.01

# Upstream data source
ESPN_BASE_URL = 'https://site.api.espn.com/apis/site/v2/sports/football/college-football'
ESPN_FBS_GROUP = 80
SEASON_TYPE_REGULAR = 2
SEASON_TYPE_POSTSEASON = 3

# Max rows per insert statement for event bonuses
BONUS_INSERT_BATCH_SIZE = 500
