"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track Validation Errors
    TRACK_NEEDS_ONE_LOCATOR = "Track must have exactly one of local_path or source"
    LOCAL_FILE_MISSING = "Local audio file does not exist: {path}"

    # Volume Validation Errors
    INVALID_GAIN = "Gain must be between 0.0 and 1.0"
    INVALID_VOLUME = "Volume must be a finite number, got {percent}"

    # Stream Errors
    STREAM_PROCESS_EXITED = "yt-dlp exited with code {code} before producing audio"
    STREAM_OPEN_TIMEOUT = "Timed out after {timeout}s waiting for audio from {source}"
    STREAM_SPAWN_FAILED = "Could not start {executable}: {error}"
    LOCAL_FILE_UNREADABLE = "Could not open local file {path}: {error}"

    # Settings Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds 64-bit range"
    TRIGGER_AUDIO_PATH_REQUIRED = "trigger.audio_path is required when trigger words are configured"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Authentication/Security Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Voice/Audio Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect voice in guild %s: %r"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"
    GUILD_NOT_FOUND = "Guild %s not found"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"

    # Sink Operations
    SINK_STARTED = "Sink started stream %s in guild %s"
    SINK_ENDED = "Sink ended in guild %s (error: %s)"
    SINK_STALE_STATUS = "Ignoring stale sink status %s in guild %s"
    SINK_PLAY_FAILED = "Sink failed to start '%s' in guild %s: %r"
    SINK_FAILED_STOP = "Failed to stop sink: %s"
    SINK_FAILED_PAUSE = "Failed to pause: %s"
    SINK_FAILED_RESUME = "Failed to resume: %s"
    SINK_FAILED_VOLUME = "Failed to set gain: %s"
    SINK_STREAM_CLOSE_ERROR = "Error closing audio stream: %s"

    # Playback Loop
    PLAYBACK_RESOLVING = "Opening stream for '%s' in guild %s"
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_STALE_STREAM = "Discarding stale stream for '%s' in guild %s"
    PLAYBACK_VOLUME_CHANGED = "Volume set to %.2f in guild %s"
    PLAYBACK_ADVANCE_FAILED = "Unexpected error advancing playback in guild %s"

    # Retry Policy
    RETRY_SCHEDULED = "Stream open failed for '%s' (attempt %d/%d), retrying in %.2fs: %s"
    RETRY_EXHAUSTED = "Discarding '%s' after %d failed attempts: %s"
    RETRY_FATAL = "Discarding unplayable '%s': %s"

    # Track Operations
    TRACK_SKIPPED = "Skipped track: %s in guild %s"
    TRACK_FINISHED = "Track finished: %s in guild %s"
    TRACK_FORCED = "Forcing '%s' to play next in guild %s"

    # Queue Operations
    QUEUE_EMPTY = "Queue empty in guild %s"
    QUEUE_ENQUEUED = "Enqueued track '%s' at position %s in guild %s"
    QUEUE_CLEARED = "Cleared %s tracks from queue in guild %s"
    QUEUE_REJECTED = "Rejected track '%s' in guild %s: %s"

    # Themed Loop / Pool
    POOL_LOADING = "Loading themed backlog from %s for guild %s"
    POOL_LOADED = "Loaded %d tracks into pool for guild %s"
    POOL_EMPTY = "Themed backlog from %s is empty, loop not started in guild %s"
    POOL_STALE_FETCH = "Discarding stale backlog fetch for guild %s"
    POOL_REFILLED = "Refilled %d tracks from pool in guild %s (queue=%d)"
    POOL_STOPPED = "Stopped themed loop in guild %s"
    POOL_REFILL_FAILED = "Pool refill failed in guild %s"

    # Idle Monitor
    IDLE_SCHEDULED = "No listeners in guild %s, scheduling teardown in %ss"
    IDLE_CANCELLED = "Cancelled idle teardown for guild %s"
    IDLE_FIRED = "Idle timeout reached, tearing down guild %s"

    # Session/Registry
    SESSION_CREATED = "Created session for guild %s"
    SESSION_REUSED = "Reusing session for guild %s"
    SESSION_DESTROYED = "Destroyed session for guild %s (reason=%s)"
    SESSION_NOT_FOUND = "No session found for guild %s"
    SESSIONS_CLOSED = "Closed %d sessions"

    # Resolution/Search
    RESOLUTION_EMPTY = "No candidates for %r"
    YTDLP_FAILED_SEARCH = "Failed to search for %r"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"
    YTDLP_FAILED_EXTRACT_BACKLOG = "Failed to extract backlog from %s"
    YTDLP_SKIPPED_ENTRY = "Skipping unusable yt-dlp entry: %s"
    STREAM_SPAWNED = "Spawned yt-dlp (pid=%s) for %s"
    STREAM_PROCESS_CLEANUP_ERROR = "Error cleaning up stream process: %s"

    # Event Bus
    EVENT_HANDLER_ERROR = "Error in handler for %s: %s"

    # Notifications
    NOTIFY_FAILED = "Failed to send now-playing message in guild %s: %r"
    TRIGGER_MATCHED = "Trigger word matched in guild %s, forcing %s"

    # Application Lifecycle
    BOT_STARTING = "Starting guild jukebox in {environment} mode"
    BOT_AUDIO_TOOL_MISSING = "%s executable %r not found on PATH"
    BOT_AUDIO_TOOLS_FOUND = "Audio tools: ffmpeg=%s yt-dlp=%s"
    BOT_SETUP = "Setting up bot..."
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %d guilds"
    BOT_CONTAINER_INITIALIZED = "Container initialized"
    BOT_CONTAINER_INIT_FAILED = "Failed to initialize container: %s"
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"

    # Bot Cog Management
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_COGS_LOADED_SUMMARY = "Cogs loaded: %d ok, %d failed"

    # Bot Command Sync
    BOT_SYNCED_GUILD = "Synced %s commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync to guild %s: %s"
    BOT_SYNCED_GLOBAL = "Synced %s commands globally"
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync commands globally: %s"
    BOT_SYNC_ON_STARTUP_FAILED = "Command sync on startup failed: %s"

    # Bot Error Handling
    BOT_SLASH_COMMAND_ERROR = "Slash command error in '%s': %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    Keep them concise, friendly, and include appropriate emoji.
    """

    # Action Messages
    ACTION_JOINED = "👋 Joined your voice channel."
    ACTION_LEFT = "👋 Left the voice channel."
    ACTION_ENQUEUED = "➕ Added to queue: **{title}**"
    ACTION_STOPPED = "⏹️ Stopped playback and cleared the queue."
    ACTION_SKIPPED = "⏭️ Skipped: **{title}**"
    ACTION_PAUSED = "⏸️ Paused playback."
    ACTION_RESUMED = "▶️ Resumed playback."
    ACTION_VOLUME_SET = "🔊 Volume set to **{percent}%**"
    ACTION_THEMED_LOOP_STARTED = "🔁 Themed loop running with **{count}** tracks in rotation."
    ACTION_SELECT_CANDIDATE = "🔍 Pick a track:"
    ACTION_SELECT_PLACEHOLDER = "Select a track"

    # Notifications
    NOW_PLAYING = "🎵 **Now Playing**\n**{title}**\n{source}"

    # Error Messages
    ERROR_NO_RESULTS = "❌ No results found."
    ERROR_INVALID_TRACK = "❌ {error}"
    ERROR_THEMED_LOOP_FAILED = "❌ Could not start the themed loop."
    ERROR_THEMED_LOOP_NOT_CONFIGURED = "❌ No themed loop seed is configured."
    ERROR_COULD_NOT_JOIN_VOICE = "❌ I couldn't join your voice channel."
    ERROR_NO_SESSION = "❌ I'm not in a voice channel here."
    ERROR_GENERIC = "❌ Something went wrong."

    # State Messages
    STATE_NOTHING_PLAYING = "Nothing is playing."
    STATE_NOTHING_PAUSED = "Nothing is paused."
    STATE_NEED_TO_BE_IN_VOICE = "You need to be in a voice channel first."
    STATE_SERVER_ONLY = "This command can only be used in a server."
