"""Automation helper adapters the orchestrator captures HTML from and heals against."""

import asyncio
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from playwright.async_api import Page
from selenium.common.exceptions import NoSuchElementException
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.support.ui import Select


logger = logging.getLogger("healing.helpers")

Locator = Union[str, Dict[str, str]]

# Helper kinds able to produce page HTML, in priority order.
SUPPORTED_HELPERS = (
    "Playwright",
    "WebDriver",
    "Puppeteer",
    "Appium",
    "TestCafe",
    "Protractor",
    "Nightmare",
)

LOCATOR_KINDS = ("css", "xpath", "id", "name")

_CSS_START = re.compile(r"^([#.\[]|[a-zA-Z][\w-]*[#.\[:])")


def select_html_helper(helpers: Optional[Mapping[str, Any]]) -> Optional[Any]:
    """Return the first registered helper from the supported priority list."""
    if not helpers:
        return None
    for name in SUPPORTED_HELPERS:
        helper = helpers.get(name)
        if helper is not None:
            return helper
    return None


def parse_locator(locator: Locator) -> Tuple[str, str]:
    """Classify a locator as (kind, value); kind is css, xpath, id, name or text.

    Dict locators use their single key, e.g. {"css": "#go"}. Strings starting
    with // or (/ are XPath, strings that look like a CSS selector are CSS,
    anything else is matched against visible text and labels. Strict callers
    such as grabHTMLFrom read a bare word as a CSS tag selector instead.
    """
    if isinstance(locator, dict):
        for kind in LOCATOR_KINDS:
            if kind in locator:
                return kind, str(locator[kind])
        raise ValueError(f"Unsupported locator: {locator}")

    value = str(locator).strip()
    if value.startswith("//") or value.startswith("(/") or value.startswith(".//"):
        return "xpath", value
    if _CSS_START.match(value) or " > " in value:
        return "css", value
    return "text", value


def xpath_literal(value: str) -> str:
    """Quote a string for use inside an XPath expression."""
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    parts = value.split('"')
    return "concat(" + ", '\"', ".join(f'"{p}"' for p in parts) + ")"


class AutomationHelper(ABC):
    """Uniform action set over one browser automation driver.

    Only the actions the heal plugin may replay are exposed. DSL names from
    test code (``fillField``) map to Python methods (``fill_field``).
    """

    kind: str = ""

    DSL_ACTIONS = {
        "click": "click",
        "doubleClick": "double_click",
        "fillField": "fill_field",
        "appendField": "append_field",
        "selectOption": "select_option",
        "attachFile": "attach_file",
        "checkOption": "check_option",
        "uncheckOption": "uncheck_option",
        "grabHTMLFrom": "grab_html_from",
    }

    async def perform(self, name: str, *args: Any) -> Any:
        """Run the DSL action ``name`` with positional arguments."""
        method_name = self.DSL_ACTIONS.get(name)
        if method_name is None:
            raise AttributeError(f"{type(self).__name__} does not support '{name}'")
        logger.debug(f"{self.kind}: {name}{args}")
        return await getattr(self, method_name)(*args)

    @abstractmethod
    async def grab_html_from(self, locator: Locator) -> str:
        ...

    @abstractmethod
    async def click(self, locator: Locator, context: Optional[Locator] = None) -> None:
        ...

    @abstractmethod
    async def double_click(self, locator: Locator, context: Optional[Locator] = None) -> None:
        ...

    @abstractmethod
    async def fill_field(self, field: Locator, value: Any) -> None:
        ...

    @abstractmethod
    async def append_field(self, field: Locator, value: Any) -> None:
        ...

    @abstractmethod
    async def select_option(self, select: Locator, option: Any) -> None:
        ...

    @abstractmethod
    async def attach_file(self, locator: Locator, path: str) -> None:
        ...

    @abstractmethod
    async def check_option(self, field: Locator, context: Optional[Locator] = None) -> None:
        ...

    @abstractmethod
    async def uncheck_option(self, field: Locator, context: Optional[Locator] = None) -> None:
        ...


class WebDriverHelper(AutomationHelper):
    """Adapter over a Selenium WebDriver session.

    Selenium calls block, so each action runs in a worker thread.
    """

    kind = "WebDriver"

    CLICKABLE_XPATH = (
        ".//*[self::a or self::button or self::input or self::label or @role='button' or @onclick]"
        "[normalize-space(.)={v} or @value={v} or @aria-label={v} or @title={v}]"
    )
    FIELD_XPATH = (
        ".//*[self::input or self::textarea or self::select]"
        "[@name={v} or @placeholder={v} or @aria-label={v} or @id=//label[normalize-space(.)={v}]/@for]"
    )

    def __init__(self, driver: WebDriver):
        self.driver = driver

    def _by(self, locator: Locator, field: bool = False, strict: bool = False) -> Tuple[str, str]:
        kind, value = parse_locator(locator)
        if kind == "text" and strict:
            kind = "css"
        if kind == "css":
            return By.CSS_SELECTOR, value
        if kind == "xpath":
            return By.XPATH, value
        if kind == "id":
            return By.ID, value
        if kind == "name":
            return By.NAME, value
        template = self.FIELD_XPATH if field else self.CLICKABLE_XPATH
        return By.XPATH, template.format(v=xpath_literal(value))

    def _find(self, locator: Locator, context: Optional[Locator] = None, field: bool = False,
              strict: bool = False):
        root = self.driver
        if context is not None:
            root = self.driver.find_element(*self._by(context))
        return root.find_element(*self._by(locator, field=field, strict=strict))

    async def grab_html_from(self, locator: Locator) -> str:
        element = await asyncio.to_thread(self._find, locator, None, False, True)
        return await asyncio.to_thread(element.get_attribute, "innerHTML") or ""

    async def click(self, locator: Locator, context: Optional[Locator] = None) -> None:
        element = await asyncio.to_thread(self._find, locator, context)
        await asyncio.to_thread(element.click)

    async def double_click(self, locator: Locator, context: Optional[Locator] = None) -> None:
        element = await asyncio.to_thread(self._find, locator, context)
        await asyncio.to_thread(ActionChains(self.driver).double_click(element).perform)

    async def fill_field(self, field: Locator, value: Any) -> None:
        element = await asyncio.to_thread(self._find, field, None, True)
        await asyncio.to_thread(element.clear)
        await asyncio.to_thread(element.send_keys, str(value))

    async def append_field(self, field: Locator, value: Any) -> None:
        element = await asyncio.to_thread(self._find, field, None, True)
        await asyncio.to_thread(element.send_keys, str(value))

    async def select_option(self, select: Locator, option: Any) -> None:
        element = await asyncio.to_thread(self._find, select, None, True)
        dropdown = Select(element)
        options = option if isinstance(option, list) else [option]
        for item in options:
            await asyncio.to_thread(self._select_one, dropdown, str(item))

    @staticmethod
    def _select_one(dropdown: Select, option: str) -> None:
        try:
            dropdown.select_by_visible_text(option)
        except NoSuchElementException:
            dropdown.select_by_value(option)

    async def attach_file(self, locator: Locator, path: str) -> None:
        element = await asyncio.to_thread(self._find, locator, None, True)
        await asyncio.to_thread(element.send_keys, os.path.abspath(path))

    async def check_option(self, field: Locator, context: Optional[Locator] = None) -> None:
        element = await asyncio.to_thread(self._find, field, context, True)
        if not await asyncio.to_thread(element.is_selected):
            await asyncio.to_thread(element.click)

    async def uncheck_option(self, field: Locator, context: Optional[Locator] = None) -> None:
        element = await asyncio.to_thread(self._find, field, context, True)
        if await asyncio.to_thread(element.is_selected):
            await asyncio.to_thread(element.click)


class PlaywrightHelper(AutomationHelper):
    """Adapter over a Playwright async ``Page``."""

    kind = "Playwright"

    def __init__(self, page: Page):
        self.page = page

    def _locator(self, locator: Locator, context: Optional[Locator] = None, field: bool = False,
                 strict: bool = False):
        root = self.page
        if context is not None:
            root = self._locator(context).first
        kind, value = parse_locator(locator)
        if kind == "text" and strict:
            kind = "css"
        if kind == "css":
            return root.locator(f"css={value}")
        if kind == "xpath":
            return root.locator(f"xpath={value}")
        if kind == "id":
            return root.locator(f'[id="{value}"]')
        if kind == "name":
            return root.locator(f'[name="{value}"]')
        if field:
            return root.get_by_label(value, exact=True).or_(root.get_by_placeholder(value, exact=True))
        return root.get_by_text(value, exact=True)

    async def grab_html_from(self, locator: Locator) -> str:
        return await self._locator(locator, strict=True).first.inner_html()

    async def click(self, locator: Locator, context: Optional[Locator] = None) -> None:
        await self._locator(locator, context).first.click()

    async def double_click(self, locator: Locator, context: Optional[Locator] = None) -> None:
        await self._locator(locator, context).first.dblclick()

    async def fill_field(self, field: Locator, value: Any) -> None:
        await self._locator(field, field=True).first.fill(str(value))

    async def append_field(self, field: Locator, value: Any) -> None:
        await self._locator(field, field=True).first.press_sequentially(str(value))

    async def select_option(self, select: Locator, option: Any) -> None:
        await self._locator(select, field=True).first.select_option(option)

    async def attach_file(self, locator: Locator, path: str) -> None:
        await self._locator(locator, field=True).first.set_input_files(os.path.abspath(path))

    async def check_option(self, field: Locator, context: Optional[Locator] = None) -> None:
        await self._locator(field, context, field=True).first.check()

    async def uncheck_option(self, field: Locator, context: Optional[Locator] = None) -> None:
        await self._locator(field, context, field=True).first.uncheck()
