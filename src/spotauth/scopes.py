"""Permission scopes recognised by the Spotify Accounts Service.

The scopes passed to an authenticator decide which permissions the user is
asked to grant. Values are sent to Spotify as-is.
"""

PLAYLIST_READ_PRIVATE = "playlist-read-private"
PLAYLIST_MODIFY_PUBLIC = "playlist-modify-public"
PLAYLIST_MODIFY_PRIVATE = "playlist-modify-private"
PLAYLIST_READ_COLLABORATIVE = "playlist-read-collaborative"

USER_FOLLOW_MODIFY = "user-follow-modify"
USER_FOLLOW_READ = "user-follow-read"

USER_LIBRARY_MODIFY = "user-library-modify"
USER_LIBRARY_READ = "user-library-read"

USER_READ_PRIVATE = "user-read-private"
USER_READ_EMAIL = "user-read-email"
USER_READ_BIRTHDATE = "user-read-birthdate"

DESCRIPTIONS = {
    PLAYLIST_READ_PRIVATE: "Read the user's private playlists",
    PLAYLIST_MODIFY_PUBLIC: "Write access to the user's public playlists",
    PLAYLIST_MODIFY_PRIVATE: "Write access to the user's private playlists",
    PLAYLIST_READ_COLLABORATIVE: "Read the user's collaborative playlists",
    USER_FOLLOW_MODIFY: "Follow and unfollow artists and users",
    USER_FOLLOW_READ: "Read the artists and users the user follows",
    USER_LIBRARY_MODIFY: "Write/delete access to the user's \"Your Music\" library",
    USER_LIBRARY_READ: "Read the user's \"Your Music\" library",
    USER_READ_PRIVATE: "Read subscription details (account type)",
    USER_READ_EMAIL: "Read the user's email address",
    USER_READ_BIRTHDATE: "Read the user's birthdate",
}

ALL_SCOPES = tuple(DESCRIPTIONS)
