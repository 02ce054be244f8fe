"""
In-page candidate collection script.

Runs in the page through a single page.evaluate() call. Walks the main
document, every open shadow root and every same-origin iframe, applies the
visibility filter and returns raw attribute records. Locator synthesis and
role classification happen in Python on these records.
"""

# Natively interactive tags, ARIA roles and attributes
CANDIDATE_SELECTORS = [
    "a[href]",
    "button",
    'input:not([type="hidden"])',
    "select",
    "textarea",
    "summary",
    '[role="button"]',
    '[role="link"]',
    '[role="checkbox"]',
    '[role="radio"]',
    '[role="switch"]',
    '[role="tab"]',
    '[role="menuitem"]',
    '[role="menuitemcheckbox"]',
    '[role="menuitemradio"]',
    '[role="option"]',
    '[role="combobox"]',
    '[role="searchbox"]',
    '[role="textbox"]',
    '[role="slider"]',
    "[onclick]",
    '[tabindex]:not([tabindex="-1"])',
    '[contenteditable="true"]',
    "[aria-expanded]",
    "[aria-haspopup]",
]

# A cursor:pointer element inside one of these is already covered
NATIVE_INTERACTIVE = 'a, button, input, select, textarea, summary, label, [role="button"], [role="link"]'

# Tags swept for cursor:pointer
POINTER_SWEEP_TAGS = "div, span, li, img, svg, i, p, td, h1, h2, h3, h4, h5, h6"

TESTING_ATTRIBUTES = ["data-testid", "data-cy", "data-test", "data-qa"]


COLLECT_CANDIDATES_JS = """
(args) => {
    const {
        candidateSelector, nativeSelector, sweepSelector, testingAttributes,
        maxRaw, heightFactor, widthFactor, maxLength, pathDepth
    } = args;

    const seen = new Set();
    const raw = [];
    const topWidth = window.innerWidth || document.documentElement.clientWidth;
    const topHeight = window.innerHeight || document.documentElement.clientHeight;

    const clip = (value) => (value || '').toString().substring(0, maxLength);
    const quote = (value) => value.replace(/\\\\/g, '\\\\\\\\').replace(/"/g, '\\\\"');

    function structuralPath(el) {
        const parts = [];
        let node = el;
        while (node && node.nodeType === 1 && parts.length < pathDepth) {
            const tag = node.tagName.toLowerCase();
            if (tag === 'html' || tag === 'body') break;
            let segment = tag;
            const parent = node.parentNode;
            if (parent && parent.children) {
                const sameTag = Array.from(parent.children).filter(c => c.tagName === node.tagName);
                if (sameTag.length > 1) {
                    segment += `:nth-of-type(${sameTag.indexOf(node) + 1})`;
                }
            }
            parts.unshift(segment);
            node = node.parentNode;
        }
        return parts.join(' > ');
    }

    function hostSelector(el) {
        const tag = el.tagName.toLowerCase();
        const id = el.getAttribute('id');
        if (id && /^[A-Za-z][\\w-]*$/.test(id)) return `${tag}#${id}`;
        const name = el.getAttribute('name');
        if (name) return `${tag}[name="${quote(name)}"]`;
        const src = el.getAttribute('src');
        if (tag === 'iframe' && src) return `iframe[src="${quote(src)}"]`;
        return structuralPath(el) || tag;
    }

    function isPointerCandidate(el) {
        let style;
        try { style = getComputedStyle(el); } catch (e) { return false; }
        if (style.cursor !== 'pointer') return false;
        if (el.parentElement && el.parentElement.closest(nativeSelector)) return false;
        const parent = el.parentElement;
        if (parent) {
            try {
                if (getComputedStyle(parent).cursor === 'pointer') return false;
            } catch (e) { /* detached */ }
        }
        return true;
    }

    function record(el, zone, hosts, frames, offset) {
        const tag = el.tagName.toLowerCase();
        const inputType = (el.getAttribute('type') || '').toLowerCase();
        let text = '';
        if (tag === 'input') {
            if (['submit', 'button', 'reset'].includes(inputType)) text = el.value || '';
        } else {
            text = el.innerText || el.textContent || '';
        }
        const testing = {};
        for (const attr of testingAttributes) {
            const value = el.getAttribute(attr);
            if (value) testing[attr] = clip(value);
        }
        const rect = el.getBoundingClientRect();
        return {
            tag,
            inputType,
            id: el.getAttribute('id') || '',
            name: clip(el.getAttribute('name')),
            placeholder: clip(el.getAttribute('placeholder')),
            ariaLabel: clip(el.getAttribute('aria-label')),
            title: clip(el.getAttribute('title')),
            href: clip(el.getAttribute('href')),
            roleAttr: (el.getAttribute('role') || '').toLowerCase(),
            className: (el.getAttribute('class') || '').toString(),
            ariaExpanded: el.hasAttribute('aria-expanded'),
            ariaHaspopup: el.hasAttribute('aria-haspopup'),
            text: text.trim().substring(0, maxLength),
            testing,
            bounds: {
                x: Math.round(rect.x + offset.x),
                y: Math.round(rect.y + offset.y),
                width: Math.round(rect.width),
                height: Math.round(rect.height)
            },
            originZone: zone,
            shadowHosts: hosts.slice(),
            frames: frames.slice(),
            structuralPath: structuralPath(el)
        };
    }

    function isVisible(el, offset) {
        const rect = el.getBoundingClientRect();
        if (rect.width <= 0 || rect.height <= 0) return false;
        let style;
        try { style = getComputedStyle(el); } catch (e) { return false; }
        if (style.display === 'none') return false;
        if (style.visibility === 'hidden') return false;
        if (parseFloat(style.opacity) === 0) return false;
        const top = rect.top + offset.y;
        const left = rect.left + offset.x;
        if (top > topHeight * heightFactor) return false;
        if (left > topWidth * widthFactor) return false;
        return true;
    }

    function collect(root, hosts, frames, offset) {
        const zone = frames.length ? 'same-origin-iframe' : (hosts.length ? 'shadow-root' : 'main-document');
        const found = Array.from(root.querySelectorAll(candidateSelector));
        for (const el of root.querySelectorAll(sweepSelector)) {
            if (isPointerCandidate(el)) found.push(el);
        }
        // Keep document order across both sources
        found.sort((a, b) => {
            if (a === b) return 0;
            return (a.compareDocumentPosition(b) & Node.DOCUMENT_POSITION_FOLLOWING) ? -1 : 1;
        });
        for (const el of found) {
            if (raw.length >= maxRaw) return;
            if (seen.has(el)) continue;
            seen.add(el);
            raw.push({el, zone, hosts, frames, offset});
        }

        for (const el of root.querySelectorAll('*')) {
            if (raw.length >= maxRaw) return;
            if (el.shadowRoot) {
                collect(el.shadowRoot, hosts.concat([hostSelector(el)]), frames, offset);
            }
        }

        for (const frameEl of root.querySelectorAll('iframe, frame')) {
            if (raw.length >= maxRaw) return;
            let doc = null;
            try { doc = frameEl.contentDocument; } catch (e) { doc = null; }
            if (!doc || !doc.documentElement) continue;  // cross-origin
            const frameRect = frameEl.getBoundingClientRect();
            collect(
                doc,
                [],
                frames.concat([hostSelector(frameEl)]),
                {x: offset.x + frameRect.left, y: offset.y + frameRect.top}
            );
        }
    }

    collect(document, [], [], {x: 0, y: 0});

    const candidates = [];
    let hidden = 0;
    for (const item of raw) {
        if (!isVisible(item.el, item.offset)) {
            hidden++;
            continue;
        }
        candidates.push(record(item.el, item.zone, item.hosts, item.frames, item.offset));
    }
    return {rawCount: raw.length, hiddenCount: hidden, candidates};
}
"""


VISIBLE_TEXT_JS = "(maxLength) => (document.body && document.body.innerText || '').substring(0, maxLength)"


def build_scan_args(config) -> dict:
    """Arguments passed to COLLECT_CANDIDATES_JS"""
    return {
        "candidateSelector": ", ".join(CANDIDATE_SELECTORS),
        "nativeSelector": NATIVE_INTERACTIVE,
        "sweepSelector": POINTER_SWEEP_TAGS,
        "testingAttributes": TESTING_ATTRIBUTES,
        "maxRaw": config.max_raw_candidates,
        "heightFactor": config.viewport_height_factor,
        "widthFactor": config.viewport_width_factor,
        "maxLength": config.attribute_max_length,
        "pathDepth": config.structural_path_depth,
    }
