"""Canned replies and reply formatting"""

WELCOME_TEXT = (
    "Welcome to SpendWise Bot! Use /summary for today's expenses, "
    "or log expenses like 'Groceries 50'."
)

HELP_TEXT = """SpendWise Bot Help 📖

Commands:
• /start - Welcome message
• /expense - Add a new expense
• /reminders - View your reminders
• /summary - View today's expense summary
• /month - View this month's summary

Expense formats (both work):
• description amount
• amount description

Examples:
Coffee Tea 15.50
25 Lunch at restaurant

Batch example:
Coffee 5.50
12.25 Lunch
Gas bill 45"""

EXPENSE_HELP_TEXT = """To add expenses, use either format:

Format 1: description amount
Format 2: amount description

Examples:
• Coffee Tea 5.50
• 25.99 Groceries
• Gas bill 150
• 12 Lunch

Batch example:
Coffee 5.50
12 Lunch
Gas bill 45.75"""

UNKNOWN_COMMAND_TEXT = "I don't understand that command. Type /help for available commands."

NO_REMINDERS_TEXT = "No reminders found 📝"

SINGLE_EXPENSE_TEXT = "✅ Expense logged successfully!"


def _group_indian(digits):
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount):
    """Format as rupees with Indian digit grouping, e.g. ₹1,23,456.00"""
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    return f"{sign}₹{_group_indian(whole)}.{fraction}"


def format_due_date(reminder, today):
    """Describe when a monthly reminder is due relative to ``today``"""
    day = today.day
    start, end = reminder.day_of_month_start, reminder.day_of_month_end
    if start == end:
        if day == start:
            return "Due Today"
        return f"Due on {start}"
    if start <= day <= end:
        return "Due Today"
    return f"Due between {start}-{end}"


def format_reminders(reminders, today):
    if not reminders:
        return NO_REMINDERS_TEXT
    lines = ["🔔 Daily Reminders", ""]
    for r in reminders:
        lines.append(f"  • {r.description} - {format_currency(r.amount)} ({format_due_date(r, today)})")
    lines.append("")
    lines.append("Please check the app to take action.")
    return "\n".join(lines)


def format_failures(failures):
    """List rejected lines with their numbers and reasons"""
    lines = [f"⚠️ Could not process {len(failures)} line(s):"]
    for f in failures:
        lines.append(f'  - Line {f.line_number}: "{f.text.strip()}" ({f.reason.message})')
    return "\n".join(lines)


def format_batch_reply(result, api_message=""):
    """Combined reply for a saved batch and any lines that were skipped"""
    if api_message:
        text = f"✅ {api_message}"
    else:
        text = f"✅ {len(result.records)} expense(s) saved successfully"
    if result.failures:
        text += "\n\n" + format_failures(result.failures)
    return text


def format_no_valid_expenses(failures):
    text = "❌ No valid expenses found. Please use the format 'Description Amount' for each line."
    if failures:
        text += "\n\n" + format_failures(failures)
    return text
