"""Global constants for the bracketeer application."""

# Collection names
TOURNAMENTS_COLLECTION = "tournaments"

# Tournament kinds
KIND_ELIMINATION = "elimination"
KIND_ROUND_ROBIN = "roundrobin"

# Tournament statuses
STATUS_UNSTARTED = "unstarted"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"

# Registration types
REGISTRATION_INDIVIDUAL = "individual"
REGISTRATION_TEAM = "team"

# Scheduling
MIN_ENTRANTS = 2
MIN_TEAMS = 2
TEAM_SIZE = 5
BYE_ID_PREFIX = "bye-"
BYE_NAME = "BYE"

# Round-robin scoring
PAIRING_WIN_POINTS = 2
PAIRING_TIE_POINTS = 1
PARTIAL_LEADER_SHARE = 0.6
PARTIAL_TRAILER_SHARE = 0.4
PARTIAL_TIED_SHARE = 0.5

# Entrant statuses in elimination results
ENTRANT_ACTIVE = "active"
ENTRANT_ELIMINATED = "eliminated"
ENTRANT_CHAMPION = "champion"
