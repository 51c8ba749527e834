"""In-memory stand-ins for the Playwright page objects the agent touches."""

from collections import defaultdict

from playwright.async_api import Error as PlaywrightError


class FakeElement:
    def __init__(self, text="", on_click=None, fail_click=False):
        self.text = text
        self.on_click = on_click
        self.fail_click = fail_click
        self.clicks = []
        self.typed = []

    async def text_content(self):
        return self.text

    async def click(self, **kwargs):
        if self.fail_click:
            raise PlaywrightError("Element is not attached to the DOM")
        self.clicks.append(kwargs)
        if self.on_click:
            self.on_click()

    async def type(self, text, delay=None):
        self.typed.append(text)


class FakeKeyboard:
    def __init__(self):
        self.pressed = []

    async def press(self, key):
        self.pressed.append(key)


class FakeRequest:
    def __init__(self, url, method="GET", resource_type="xhr"):
        self.url = url
        self.method = method
        self.resource_type = resource_type


class FakeResponse:
    def __init__(self, url, headers=None, status=200, body=b"", body_error=None):
        self.url = url
        self.headers = headers or {}
        self.status = status
        self._body = body
        self._body_error = body_error

    async def body(self):
        if self._body_error:
            raise self._body_error
        return self._body


class FakePage:
    """
    Elements are registered per selector; ``appear_after`` hides an element
    until that selector has been queried that many times.
    """

    def __init__(self):
        self._elements = defaultdict(list)
        self.query_counts = defaultdict(int)
        self.listeners = defaultdict(list)
        self.eval_results = {}
        self.eval_errors = {}
        self.keyboard = FakeKeyboard()
        self.goto_calls = []
        self.goto_error = None

    def add(self, selector, element, appear_after=0):
        self._elements[selector].append((element, appear_after))
        return element

    def add_button(self, text, on_click=None, fail_click=False):
        return self.add("button, a", FakeElement(text, on_click, fail_click))

    def add_link(self, text, on_click=None):
        element = FakeElement(text, on_click)
        self.add("a", element)
        self.add("button, a", element)
        return element

    def _visible(self, selector):
        count = self.query_counts[selector]
        return [el for el, after in self._elements.get(selector, []) if count >= after]

    async def query_selector(self, selector):
        self.query_counts[selector] += 1
        visible = self._visible(selector)
        return visible[0] if visible else None

    async def query_selector_all(self, selector):
        self.query_counts[selector] += 1
        return self._visible(selector)

    async def eval_on_selector_all(self, selector, script):
        if selector in self.eval_errors:
            raise self.eval_errors[selector]
        return self.eval_results.get(selector, [])

    async def goto(self, url, **kwargs):
        if self.goto_error:
            raise self.goto_error
        self.goto_calls.append((url, kwargs))

    def on(self, event, handler):
        self.listeners[event].append(handler)

    def remove_listener(self, event, handler):
        self.listeners[event].remove(handler)

    def emit(self, event, payload):
        for handler in list(self.listeners[event]):
            handler(payload)
