from agents.base import TextAgent
from agents.assistant import AssistantAgent
