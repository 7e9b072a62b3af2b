"""Fixed names shared by every pipeline run."""

BRANCH_NAME = "squeezebot"

BOT_NAME = "squeezebot"
BOT_EMAIL = "squeezebot@users.noreply.github.com"

COMMIT_TITLE = "[squeezebot] Optimize images"

CONFIG_FILENAME = ".squeezebotconfig"

FALLBACK_QUEUE_NAME = "compressimagesmessage"
FALLBACK_ACTOR_NAME = "compress_images"
FALLBACK_QUEUE_URL_ENV = "SQUEEZEBOT_FALLBACK_QUEUE_URL"
