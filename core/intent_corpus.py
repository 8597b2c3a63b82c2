# core/intent_corpus.py
"""
Labelled exemplars for the vector matcher.

Every utterance is lower-case; queries are lower-cased before embedding so the
two sides compare like for like. Adding exemplars is the cheapest way to teach
the matcher a new phrasing.
"""
from typing import Tuple
from core.entities import CorpusExample
from model.intent import EntityKind, IntentKind


def _ex(text: str, intent: str, entity: str) -> CorpusExample:
    return CorpusExample(
        utterance=text, intent=IntentKind(intent), entity=EntityKind(entity)
    )


INTENT_CORPUS: Tuple[CorpusExample, ...] = (
    # workout
    _ex("add push ups", "add", "workout"),
    _ex("add squats to my workout", "add", "workout"),
    _ex("log bench press", "add", "workout"),
    _ex("i did 3 sets of 10 push ups", "add", "workout"),
    _ex("add deadlift with 100kg", "add", "workout"),
    _ex("record my workout", "add", "workout"),
    _ex("add pull ups for today", "add", "workout"),
    _ex("i completed 5 sets of curls", "add", "workout"),
    _ex("log 4 sets of 12 reps shoulder press", "add", "workout"),
    _ex("show my workouts", "query", "workout"),
    _ex("what workouts did i do today", "query", "workout"),
    _ex("list my exercises", "query", "workout"),
    _ex("today's workouts", "query", "workout"),
    _ex("show today's workout", "query", "workout"),
    _ex("what exercises have i done", "query", "workout"),
    _ex("delete squats from workout", "delete", "workout"),
    _ex("remove bench press", "delete", "workout"),
    _ex("cancel my push ups workout", "delete", "workout"),
    # diet
    _ex("i had breakfast", "add", "diet"),
    _ex("i ate lunch", "add", "diet"),
    _ex("had dinner today", "add", "diet"),
    _ex("mark breakfast as eaten", "add", "diet"),
    _ex("i finished my snack", "add", "diet"),
    _ex("i had lunch and dinner", "add", "diet"),
    _ex("ate breakfast lunch and snack", "add", "diet"),
    _ex("what did i eat today", "query", "diet"),
    _ex("show my meals", "query", "diet"),
    _ex("today's meals", "query", "diet"),
    _ex("list my food log", "query", "diet"),
    _ex("how many calories did i consume", "query", "diet"),
    _ex("calories eaten today", "query", "diet"),
    _ex("what meals have i had", "query", "diet"),
    _ex("i didn't have breakfast", "delete", "diet"),
    _ex("remove lunch from today", "delete", "diet"),
    _ex("unmark dinner", "delete", "diet"),
    # recipe
    _ex("add oatmeal for breakfast week 1 day 1", "add", "recipe"),
    _ex("add chicken salad for lunch week 2 day 3", "add", "recipe"),
    _ex("add eggs to lunch week 1 day 1", "add", "recipe"),
    _ex("add pasta to dinner week 1 day 5", "add", "recipe"),
    _ex("add protein shake for snack", "add", "recipe"),
    _ex("add grilled fish to recipes", "add", "recipe"),
    _ex("create a new recipe for breakfast", "add", "recipe"),
    _ex("show my recipes", "query", "recipe"),
    _ex("what's for lunch today", "query", "recipe"),
    _ex("show meal plan", "query", "recipe"),
    _ex("list my food recipes", "query", "recipe"),
    _ex("delete the oatmeal recipe", "delete", "recipe"),
    _ex("remove pasta from recipes", "delete", "recipe"),
    # steps
    _ex("add 5000 steps", "add", "steps"),
    _ex("log 8000 steps today", "add", "steps"),
    _ex("i walked 10000 steps", "add", "steps"),
    _ex("record 6500 steps", "add", "steps"),
    _ex("add my steps for today", "add", "steps"),
    _ex("show my steps", "query", "steps"),
    _ex("how many steps today", "query", "steps"),
    _ex("step count", "query", "steps"),
    _ex("how far did i walk", "query", "steps"),
    _ex("delete today's steps", "delete", "steps"),
    _ex("clear step count", "delete", "steps"),
    # measurement
    _ex("set my weight to 70kg", "update", "measurement"),
    _ex("update height to 175cm", "update", "measurement"),
    _ex("my weight is 72 kilos", "add", "measurement"),
    _ex("add chest measurement 40 inches", "add", "measurement"),
    _ex("set waist to 32", "update", "measurement"),
    _ex("update left bicep to 14 inches", "update", "measurement"),
    _ex("my neck is 15", "add", "measurement"),
    _ex("set bench press to 80kg", "update", "measurement"),
    _ex("change shoulder to 48", "update", "measurement"),
    _ex("show my measurements", "query", "measurement"),
    _ex("what's my weight", "query", "measurement"),
    _ex("show my bmi", "query", "measurement"),
    _ex("list my body stats", "query", "measurement"),
    _ex("clear neck measurement", "delete", "measurement"),
    _ex("delete waist", "delete", "measurement"),
    # reminder
    _ex("remind me to drink water at 3pm", "add", "reminder"),
    _ex("set a reminder for gym tomorrow at 6am", "add", "reminder"),
    _ex("remind me to take vitamins at 8am", "add", "reminder"),
    _ex("create a reminder to buy groceries", "add", "reminder"),
    _ex("set reminder for workout at 5pm", "add", "reminder"),
    _ex("remind me about meeting at 10am", "add", "reminder"),
    _ex("show my reminders", "query", "reminder"),
    _ex("what reminders do i have", "query", "reminder"),
    _ex("list today's reminders", "query", "reminder"),
    _ex("today's reminders", "query", "reminder"),
    _ex("change gym reminder to 7pm", "update", "reminder"),
    _ex("move water reminder to 4pm", "update", "reminder"),
    _ex("update reminder time", "update", "reminder"),
    _ex("reschedule my reminder", "update", "reminder"),
    _ex("turn off gym reminder", "update", "reminder"),
    _ex("disable water reminder", "update", "reminder"),
    _ex("enable gym reminder", "update", "reminder"),
    _ex("delete gym reminder", "delete", "reminder"),
    _ex("remove water reminder", "delete", "reminder"),
    _ex("cancel my reminder", "delete", "reminder"),
    # shopping
    _ex("add milk to shopping list", "add", "shopping"),
    _ex("add eggs bread butter to shopping", "add", "shopping"),
    _ex("put rice on my grocery list", "add", "shopping"),
    _ex("i need to buy vegetables", "add", "shopping"),
    _ex("add fruits to shopping", "add", "shopping"),
    _ex("show shopping list", "query", "shopping"),
    _ex("what's on my grocery list", "query", "shopping"),
    _ex("list items to buy", "query", "shopping"),
    _ex("change milk to almond milk in shopping", "update", "shopping"),
    _ex("update bread quantity to 2", "update", "shopping"),
    _ex("remove milk from shopping list", "delete", "shopping"),
    _ex("delete eggs from grocery", "delete", "shopping"),
    # wishlist
    _ex("add running shoes to wishlist", "add", "wishlist"),
    _ex("add iphone to my wishlist for 80000", "add", "wishlist"),
    _ex("i want to buy a laptop", "add", "wishlist"),
    _ex("add headphones to wishlist", "add", "wishlist"),
    _ex("show my wishlist", "query", "wishlist"),
    _ex("what's on my wishlist", "query", "wishlist"),
    _ex("list wishlist items", "query", "wishlist"),
    _ex("change iphone price to 90000", "update", "wishlist"),
    _ex("set laptop priority to high", "update", "wishlist"),
    _ex("update running shoes price", "update", "wishlist"),
    _ex("remove laptop from wishlist", "delete", "wishlist"),
    _ex("delete headphones from wishlist", "delete", "wishlist"),
    # analytics
    _ex("how many calories did i burn", "query", "analytics"),
    _ex("calories burnt today", "query", "analytics"),
    _ex("show my calorie burn", "query", "analytics"),
    _ex("what's my calorie expenditure", "query", "analytics"),
    _ex("how much did i burn from exercise", "query", "analytics"),
    _ex("today's analytics", "query", "analytics"),
    _ex("show my progress", "query", "analytics"),
    _ex("what are my stats", "query", "analytics"),
    _ex("show today's summary", "query", "analytics"),
    _ex("what are my macros today", "query", "analytics"),
    _ex("daily summary", "query", "analytics"),
    _ex("net calories today", "query", "analytics"),
    _ex("calorie balance", "query", "analytics"),
    # general
    _ex("hello", "chat", "general"),
    _ex("hi there", "chat", "general"),
    _ex("hey isha", "chat", "general"),
    _ex("how are you", "chat", "general"),
    _ex("what can you do", "chat", "general"),
    _ex("help me", "chat", "general"),
    _ex("thank you", "chat", "general"),
    _ex("thanks", "chat", "general"),
    _ex("good morning", "chat", "general"),
    _ex("good night", "chat", "general"),
)
