# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0", validation_alias="REDIS_URL"
    )
    STORE_NAMESPACE: str = Field(default="isha", validation_alias="STORE_NAMESPACE")

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(
        default="http://localhost:5173", validation_alias="ALLOWED_ORIGIN"
    )
    RATE_LIMIT_TIMES: int = Field(default=30, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Anthropic Settings
    ANTHROPIC_API_URL: str = Field(
        default="https://api.anthropic.com/v1/messages",
        validation_alias="ANTHROPIC_API_URL",
    )
    ANTHROPIC_MODEL: str = Field(
        default="claude-3-5-haiku-latest", validation_alias="ANTHROPIC_MODEL"
    )
    ANTHROPIC_VERSION: str = Field(
        default="2023-06-01", validation_alias="ANTHROPIC_VERSION"
    )
    # Empty key disables both generative tiers; the cascade falls through to regex.
    ANTHROPIC_API_KEY: str = Field(default="", validation_alias="ANTHROPIC_API_KEY")
    LLM_TIMEOUT_SECONDS: float = Field(
        default=30.0, validation_alias="LLM_TIMEOUT_SECONDS"
    )
    CLASSIFY_MAX_TOKENS: int = 600
    EXTRACT_MAX_TOKENS: int = 300
    LLM_TEMPERATURE: float = 0.1

    # Embedding Engine
    EMBEDDING_MODEL_NAME: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        validation_alias="EMBEDDING_MODEL_NAME",
    )
    SEMANTIC_MATCH_THRESHOLD: float = Field(
        default=0.65, ge=0.0, le=1.0, validation_alias="SEMANTIC_MATCH_THRESHOLD"
    )
    FALLBACK_CONFIDENCE: float = 0.6

    # Logging knobs
    LOGGER_NAME: str = "isha"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    CLASSIFY_SYSTEM_PROMPT: str = (
        "You are the intent classifier of ISHA, a personal fitness and life tracking assistant.\n"
        "Read the user's message and decide WHAT they want (intent) and WHICH data it concerns (entity), "
        "then pull out every concrete value they mention.\n"
        "\n"
        "INTENTS:\n"
        "- query: see/check information (\"show my workouts\", \"today's analytics\")\n"
        "- add: create/log something (\"add 5000 steps\", \"remind me to ...\", \"add milk to shopping list\")\n"
        "- update: change something that exists (\"change my weight to 70kg\")\n"
        "- delete: remove something (\"delete today's workout\")\n"
        "- chat: greetings, small talk, questions about the assistant\n"
        "\n"
        "ENTITIES:\n"
        "- workout: exercises, gym sessions, sets/reps\n"
        "- diet: meals eaten, food log, calories consumed\n"
        "- recipe: meal plan entries (week N, Day M, Breakfast/Lunch/Snack/Dinner)\n"
        "- reminder: alerts, \"remind me\", \"set a reminder\"\n"
        "- steps: step count, walking\n"
        "- measurement: body measurements (weight, height, neck, chest, biceps ...) and strength maxes (bench, squats, deadlift ...)\n"
        "- shopping: grocery/shopping list\n"
        "- wishlist: things the user wants to buy some day\n"
        "- analytics: calories burnt, macros, daily summary, progress\n"
        "- general: anything else or unclear\n"
        "- book: reading list, pages, chapters\n"
        "- anime: watchlist, episodes, seasons\n"
        "\n"
        "VALUES TO EXTRACT:\n"
        "- workout: workout_name (required), sets, reps, weights, date\n"
        "- reminder: reminder_name (required), reminder_time (24h HH:MM), date, enabled (true/false for turn on/off)\n"
        "- shopping: item_name or items (list), quantity, old_name/new_name for renames\n"
        "- wishlist: item_name (required), price, priority, category, old_name/new_name for renames\n"
        "- diet: meal_type or meal_types, action (mark_eaten/unmark_eaten), food_name, calories\n"
        "- steps: steps (required number), date\n"
        "- recipe: food_name (required), week (1-5), day (\"Day 1\"..\"Day 7\"), meal_type, ingredients, calories\n"
        "- measurement: name (required body part or lift), value (number, required for add/update)\n"
        "- book: book_name, author, current_page, total_pages\n"
        "- anime: anime_name, episode, total_episodes\n"
        "\n"
        "Respond with ONE JSON object only, no prose, no code fences:\n"
        '{"intent":"query|add|update|delete|chat","entity":"<entity>",'
        '"details":{"extracted_values":{},"time_reference":null,"original_query":""},"confidence":0.0}\n'
        "\n"
        "Examples:\n"
        'User: "I did 3 sets of 12 bench press at 60kg"\n'
        '{"intent":"add","entity":"workout","details":{"extracted_values":{"workout_name":"bench press","sets":3,"reps":12,"weights":60},"time_reference":"today","original_query":"I did 3 sets of 12 bench press at 60kg"},"confidence":0.95}\n'
        'User: "Remind me to drink water at 3pm"\n'
        '{"intent":"add","entity":"reminder","details":{"extracted_values":{"reminder_name":"drink water","reminder_time":"15:00"},"time_reference":"today","original_query":"Remind me to drink water at 3pm"},"confidence":0.96}\n'
        'User: "Turn off gym reminder"\n'
        '{"intent":"update","entity":"reminder","details":{"extracted_values":{"reminder_name":"gym","enabled":false},"time_reference":null,"original_query":"Turn off gym reminder"},"confidence":0.94}\n'
        'User: "Add milk and eggs to my shopping list"\n'
        '{"intent":"add","entity":"shopping","details":{"extracted_values":{"items":["milk","eggs"]},"time_reference":null,"original_query":"Add milk and eggs to my shopping list"},"confidence":0.97}\n'
        'User: "Change iPhone to iPhone 15 in wishlist"\n'
        '{"intent":"update","entity":"wishlist","details":{"extracted_values":{"old_name":"iPhone","new_name":"iPhone 15"},"time_reference":null,"original_query":"Change iPhone to iPhone 15 in wishlist"},"confidence":0.94}\n'
        'User: "Change my shoulder to 48"\n'
        '{"intent":"update","entity":"measurement","details":{"extracted_values":{"name":"shoulder","value":48},"time_reference":null,"original_query":"Change my shoulder to 48"},"confidence":0.95}\n'
        'User: "Add corn peas masala on week 1 day 2 for dinner"\n'
        '{"intent":"add","entity":"recipe","details":{"extracted_values":{"food_name":"corn peas masala","week":1,"day":"Day 2","meal_type":"Dinner"},"time_reference":null,"original_query":"Add corn peas masala on week 1 day 2 for dinner"},"confidence":0.96}\n'
        'User: "I had lunch and dinner"\n'
        '{"intent":"add","entity":"diet","details":{"extracted_values":{"meal_types":["Lunch","Dinner"],"action":"mark_eaten"},"time_reference":"today","original_query":"I had lunch and dinner"},"confidence":0.96}\n'
        'User: "How many calories did I burn?"\n'
        '{"intent":"query","entity":"analytics","details":{"extracted_values":{"metric":"calories_burnt"},"time_reference":"today","original_query":"How many calories did I burn?"},"confidence":0.96}\n'
        'User: "Hey, how are you?"\n'
        '{"intent":"chat","entity":"general","details":{"extracted_values":{},"time_reference":null,"original_query":"Hey, how are you?"},"confidence":0.99}\n'
    )

    EXTRACT_SYSTEM_PROMPT: str = (
        "You are a data extraction assistant. Pull the values for ONE entity out of the user's message.\n"
        "\n"
        "RULES:\n"
        "- Use exactly the field names of the schema you are given; omit fields that are not mentioned.\n"
        "- Times become 24h HH:MM (\"3pm\" -> \"15:00\", \"9am\" -> \"09:00\").\n"
        "- Dates stay as said (\"today\", \"tomorrow\", \"Thursday\", \"25th December\") or YYYY-MM-DD.\n"
        "- \"remind me to X\" -> reminder_name is X.\n"
        "- Several shopping items -> \"items\" list; one item -> \"item_name\".\n"
        "- \"week 1 day 2\" -> week: 1, day: \"Day 2\". Meal types are Breakfast, Lunch, Snack, Dinner.\n"
        "- Measurements: name is the body part or lift as said (\"left bicep\", \"bench\"), value is a number.\n"
        "\n"
        "Respond with ONE JSON object only, no prose, no code fences.\n"
    )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
