"""
app/core/errors.py
Failure taxonomy for the data gateway.

  TransientUpstreamError → absorbed by stale fallback when old data exists
  SourceUnavailable      → no old data to fall back on (HTTP 500)
  UserDataUnavailable    → team/picks lookup failed, never cached (HTTP 500)
  LiveDataUnavailable    → live gameweek points with nothing cached (HTTP 500)
  InvalidTeamId          → rejected before any upstream call (HTTP 400)
  InvalidGameweek        → gameweek outside 1..38 (HTTP 400)
"""


class GatewayError(Exception):
    pass


class TransientUpstreamError(GatewayError):
    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class SourceUnavailable(GatewayError):
    def __init__(self, source: str):
        self.source = source
        super().__init__(f"{source.capitalize()} data unavailable")


class UserDataUnavailable(GatewayError):
    def __init__(self, team_id, what: str):
        self.team_id = team_id
        self.what = what
        super().__init__(f"{what} unavailable for team {team_id}")


class InvalidTeamId(GatewayError):
    def __init__(self, team_id):
        self.team_id = team_id
        super().__init__(f"Invalid team id '{team_id}'")


class LiveDataUnavailable(GatewayError):
    def __init__(self, gameweek: int):
        self.gameweek = gameweek
        super().__init__(f"Live data unavailable for GW{gameweek}")


class InvalidGameweek(GatewayError):
    def __init__(self, gameweek):
        self.gameweek = gameweek
        super().__init__("Gameweek must be between 1 and 38")
