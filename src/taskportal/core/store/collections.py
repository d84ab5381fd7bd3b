"""集合名常量"""

TASKS = "tasks"
TASK_COMPLETIONS = "taskCompletions"
USER_STATS = "userStats"
NOTIFICATIONS = "notifications"
CLIENTS = "clients"
MEETINGS = "meetings"
TASK_COMMENTS = "taskComments"
USERS = "users"
CLIENT_NOTES = "clientNotes"
TEAM_CHAT_MESSAGES = "teamChatMessages"
PERSONAL_CHATS = "personalChats"
PERSONAL_CHAT_MESSAGES = "personalChatMessages"
