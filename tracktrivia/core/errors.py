"""Failure kinds a quiz round can end with, each with the message shown to the user."""


class QuizError(Exception):
    """Base class; user_message is what the round posts back to the channel."""
    user_message = "Something went wrong. Please try again."


class NotAuthenticated(QuizError):
    user_message = "Please link your Spotify account by clicking the link sent to your DMs."


class RefreshFailed(QuizError):
    user_message = (
        "Your Spotify link has expired. Please link your account again with the link sent to your DMs."
    )


class UpstreamUnavailable(QuizError):
    user_message = "Spotify is not responding right now. Please try again later."


class NoTopArtists(QuizError):
    user_message = "Spotify has no top artists for you yet. Listen to some more music and try again!"


class NoCatalogue(QuizError):
    user_message = "No albums found for this artist. Try another one!"


class InsufficientCandidates(QuizError):
    user_message = "This artist doesn't have enough playable previews for a round. Try another one!"


class TokenExpired(Exception):
    """Probe was rejected with 401; the access token needs a refresh."""


class LinkUnavailable(QuizError):
    user_message = "Spotify linking is not set up on this bot yet. Please ask the bot owner to configure it."
