"""Capture what the current page offers for navigation."""
from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from scout.src.utils.errors import DriverError
from scout.src.utils.models import ClickableElement, PageContext
from scout.src.utils.text import quoted, text_selector

MAX_ELEMENTS = 25

SIDEBAR_SELECTORS = (
    '[data-test="side-bar-navigation-primary"]',
    '[data-test="side-bar-navigation-secondary"]',
)

PAGE_CONTEXT_SCRIPT = """() => {
  const selectors = [
    '[data-test="side-bar-navigation-primary"] a',
    '[data-test="side-bar-navigation-primary"] button',
    '[data-test="side-bar-navigation-secondary"] a',
    '[data-test="side-bar-navigation-secondary"] button',
    'nav a[href]',
    'a[href]',
    'button:not([disabled])',
    '[role="tab"]',
    '[role="button"]',
    '[data-testid]',
    '[data-test]',
  ];
  const seen = new Set();
  const elements = [];
  for (const selector of selectors) {
    document.querySelectorAll(selector).forEach((el) => {
      if (seen.has(el) || el.offsetParent === null) { return; }
      const rect = el.getBoundingClientRect();
      if (rect.width <= 0 || rect.height <= 0) { return; }
      seen.add(el);
      elements.push({
        index: elements.length,
        tag: el.tagName,
        text: (el.textContent || '').trim().slice(0, 120),
        aria_label: el.getAttribute('aria-label') || '',
        href: el.getAttribute('href') || '',
        class_name: typeof el.className === 'string' ? el.className : '',
        element_id: el.id || '',
        data_test_id: el.getAttribute('data-testid') || el.getAttribute('data-test') || '',
        selector: selector,
      });
    });
  }
  const main = document.querySelector('main, .main-content, .content, #main');
  return {
    url: window.location.href,
    title: document.title,
    headings: Array.from(document.querySelectorAll('h1, h2, h3, h4'))
      .map((h) => (h.textContent || '').trim())
      .filter(Boolean),
    clickable_elements: elements.slice(0, %d),
    main_content: main ? (main.textContent || '').trim().slice(0, 1000) : '',
  };
}""" % MAX_ELEMENTS


def extract_page_context(driver: Any) -> PageContext:
    """Page context for the current url; empty when the page cannot be read."""
    try:
        raw = driver.evaluate(PAGE_CONTEXT_SCRIPT)
        return PageContext.model_validate(raw or {})
    except (DriverError, ValidationError):
        try:
            url = driver.current_url()
        except DriverError:
            url = ""
        return PageContext(url=url)


def element_selector(element: ClickableElement) -> str:
    """Most specific selector we can build for a captured element."""
    if element.data_test_id:
        return f"[data-testid={quoted(element.data_test_id)}], [data-test={quoted(element.data_test_id)}]"
    if element.element_id:
        return f"[id={quoted(element.element_id)}]"
    if element.href:
        return f"a[href={quoted(element.href)}]"
    if element.text:
        return text_selector(element.text)
    return element.selector


def is_sidebar_element(element: ClickableElement) -> bool:
    return any(element.selector.startswith(prefix) for prefix in SIDEBAR_SELECTORS)
