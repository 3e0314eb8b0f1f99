"""CSS selectors for the BookGenie chat UI."""

MODE_DROPDOWN = '[data-pc-name="dropdown"]'
CHAT_INPUT = '[placeholder="How can I help?"]'
CHAT_RESPONSE = (
    '[class="max-w-[90%] text-[1rem] flex flex-col gap-y-2 w-[90%]  '
    'text-[#344054] rounded-r-[8px] rounded-bl-[8px]"]'
)

WELCOME_TEXT = "Welcome to the BookGenie Mode"
THINKING_TEXT = "Creative Workspace AI is thinking"
NONE_OF_THE_ABOVE = 'p:has-text("None of the above, just")'
NONE_OF_THE_ABOVE_OPTION = 'p:has-text("None of the above, just") + span span.bg-\\[\\#DBEAFE\\]'
NONE_OF_THE_ABOVE_ALTERNATIVES = [
    "span.bg-\\[\\#DBEAFE\\]",
    'span:has-text("Search through the")',
    "span.inline-flex.space-x-1.items-center span",
]

# Accordion and citation markup
ACCORDION = "details.accordion"
SUMMARY = "summary"
SUMMARY_LABEL = "summary span.truncate"
BOOK_TITLE_LABEL = 'p:has-text("Book Title:")'
WHY_MATCH_SUMMARY = 'summary:has-text("Why this book is the")'
REASON_ITEM = "ol.list-decimal li"
CITATION_BUTTON = '[class*="BookCitation-module_citationButton"]'
CITATION_TYPE_TEXT = '[class*="BookCitation-module_citationText"]'
CITATION_ARROW = 'i[class*="pi-angle"]'
CITATION_TEXT = '[class*="BookCitation-module_paragraph"] span[id*="quotes-citations"]'

# Recommendation panel
BOOK_CARD = ".p-card"
CARD_WHY_MATCH_BUTTON = 'button:has(h2:has-text("Why this book is the"))'
