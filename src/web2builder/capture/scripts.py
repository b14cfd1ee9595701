"""In-page JavaScript evaluated by the capturer and the verifier."""

from __future__ import annotations

DOCUMENT_HEIGHT_JS = (
    "() => Math.max(document.body?.scrollHeight || 0, document.documentElement?.scrollHeight || 0)"
)

SCROLL_TO_JS = "(y) => window.scrollTo(0, y)"

PAGE_INFO_JS = """
() => ({
  title: document.title || '',
  description: document.querySelector('meta[name="description"]')?.content || '',
  favicon: document.querySelector('link[rel="icon"]')?.href
    || document.querySelector('link[rel="shortcut icon"]')?.href
    || null,
  charset: document.charset || '',
  lang: document.documentElement.lang || '',
  viewport: document.querySelector('meta[name="viewport"]')?.content || '',
})
"""

# Walks the DOM with an explicit stack and emits a flat list of nodes with
# parent indexes; the Python side rebuilds the tree.
ELEMENT_TREE_JS = """
({maxDepth, maxMarkupChars}) => {
  const SKIP = new Set(['script', 'style', 'meta', 'link', 'title', 'head']);
  const ALWAYS = new Set(['body', 'html', 'form', 'table', 'thead', 'tbody', 'tr']);
  const INNER = new Set([
    'p', 'span', 'a', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'li', 'ul', 'ol',
    'div', 'nav', 'menu', 'label', 'blockquote', 'figcaption', 'strong', 'em',
  ]);
  const OUTER = new Set([
    'form', 'input', 'textarea', 'select', 'button', 'video', 'iframe',
    'table', 'svg', 'audio', 'embed',
  ]);
  const ATTRS = ['href', 'src', 'alt', 'title', 'name', 'type', 'value', 'placeholder', 'role'];
  const sides = (style, prefix) => ({
    top: style[prefix + 'Top'],
    right: style[prefix + 'Right'],
    bottom: style[prefix + 'Bottom'],
    left: style[prefix + 'Left'],
  });
  const directText = (el) => {
    let out = '';
    for (const child of el.childNodes) {
      if (child.nodeType === Node.TEXT_NODE) out += child.textContent;
    }
    return out.replace(/\\s+/g, ' ').trim();
  };
  const markup = (value, node) => {
    if (value.length > maxMarkupChars) {
      node.markup_truncated = true;
      return '';
    }
    return value;
  };
  const nodes = [];
  const root = document.body || document.documentElement;
  const stack = [{el: root, depth: 0, parent: -1}];
  while (stack.length) {
    const {el, depth, parent} = stack.pop();
    const tag = el.tagName.toLowerCase();
    if (SKIP.has(tag)) continue;
    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    const text = directText(el);
    const hasMarkup = el.innerHTML.trim().length > 0;
    const visible = rect.width > 0 && rect.height > 0 && style.visibility !== 'hidden' && style.display !== 'none';
    if (!(visible || ALWAYS.has(tag) || text || hasMarkup)) continue;
    const attributes = {};
    for (const name of ATTRS) {
      const value = el.getAttribute(name);
      if (value !== null) attributes[name] = value;
    }
    for (const attr of el.attributes) {
      if (attr.name.startsWith('aria-') || attr.name.startsWith('data-')) {
        attributes[attr.name] = attr.value;
      }
    }
    if (tag === 'img' && el.currentSrc) attributes.src = el.currentSrc;
    if (tag === 'a' && el.href) attributes.href = el.href;
    const node = {
      parent: parent,
      tag: tag,
      depth: depth,
      element_id: el.id || '',
      class_name: typeof el.className === 'string' ? el.className : (el.getAttribute('class') || ''),
      text: text,
      has_markup: hasMarkup,
      inner_html: '',
      outer_html: '',
      attributes: attributes,
      markup_truncated: false,
      style: {
        x: rect.left + window.scrollX,
        y: rect.top + window.scrollY,
        width: rect.width,
        height: rect.height,
        display: style.display,
        position: style.position,
        flex_direction: style.flexDirection,
        flex_wrap: style.flexWrap,
        justify_content: style.justifyContent,
        align_items: style.alignItems,
        grid_template_columns: style.gridTemplateColumns,
        grid_template_rows: style.gridTemplateRows,
        flex: style.flex,
        flex_grow: style.flexGrow,
        flex_basis: style.flexBasis,
        order: style.order,
        margin: sides(style, 'margin'),
        padding: sides(style, 'padding'),
        background_color: style.backgroundColor,
        background_image: style.backgroundImage,
        background_size: style.backgroundSize,
        background_position: style.backgroundPosition,
        background_repeat: style.backgroundRepeat,
        border: style.border,
        border_width: style.borderWidth,
        border_style: style.borderStyle,
        border_color: style.borderColor,
        border_radius: style.borderRadius,
        box_shadow: style.boxShadow,
        font_family: style.fontFamily,
        font_size: style.fontSize,
        font_weight: style.fontWeight,
        font_style: style.fontStyle,
        line_height: style.lineHeight,
        text_align: style.textAlign,
        text_decoration: style.textDecorationLine || style.textDecoration,
        text_transform: style.textTransform,
        letter_spacing: style.letterSpacing,
        color: style.color,
        visibility: style.visibility,
        opacity: style.opacity,
        overflow: style.overflow,
        overflow_x: style.overflowX,
        overflow_y: style.overflowY,
        z_index: style.zIndex,
        transform: style.transform,
        css_float: style.cssFloat,
        white_space: style.whiteSpace,
      },
    };
    if (INNER.has(tag)) node.inner_html = markup(el.innerHTML, node);
    if (OUTER.has(tag)) node.outer_html = markup(el.outerHTML, node);
    const index = nodes.length;
    nodes.push(node);
    if (depth >= maxDepth || OUTER.has(tag)) continue;
    const children = Array.from(el.children);
    for (let i = children.length - 1; i >= 0; i--) {
      stack.push({el: children[i], depth: depth + 1, parent: index});
    }
  }
  return nodes;
}
"""

STYLESHEETS_JS = """
() => {
  let text = '';
  const sheets = [];
  const inaccessible = [];
  for (const sheet of Array.from(document.styleSheets)) {
    try {
      let sheetText = '';
      for (const rule of Array.from(sheet.cssRules || [])) sheetText += rule.cssText + '\\n';
      sheets.push({href: sheet.href || '', text: sheetText});
      text += sheetText;
    } catch (e) {
      if (sheet.href) inaccessible.push(sheet.href);
    }
  }
  return {text: text, sheets: sheets, inaccessible: inaccessible};
}
"""

ASSETS_JS = """
() => {
  const assets = {
    images: [], fonts: new Set(), colors: new Set(), gradients: [], videos: [],
    forms: [], buttons: [], links: [], stylesheets: [], scripts: [],
  };
  document.querySelectorAll('img, [data-src], [data-lazy-src]').forEach((img) => {
    const src = img.src || img.getAttribute('data-src') || img.getAttribute('data-lazy-src');
    if (!src) return;
    const rect = img.getBoundingClientRect();
    assets.images.push({
      src: src,
      alt: img.alt || '',
      title: img.title || '',
      width: rect.width || img.offsetWidth || 0,
      height: rect.height || img.offsetHeight || 0,
      natural_width: img.naturalWidth || 0,
      natural_height: img.naturalHeight || 0,
      srcset: img.srcset || '',
    });
  });
  document.querySelectorAll('*').forEach((el) => {
    const style = window.getComputedStyle(el);
    const bg = style.backgroundImage;
    if (bg && bg !== 'none') {
      const match = bg.match(/url\\(['"]?([^'")]+)['"]?\\)/);
      if (match) {
        assets.images.push({src: match[1], type: 'background', width: el.offsetWidth, height: el.offsetHeight});
      }
      if (bg.includes('gradient')) assets.gradients.push(bg);
    }
    if (style.fontFamily) {
      style.fontFamily.split(',').forEach((font) => {
        const name = font.trim().replace(/['"]/g, '');
        if (name) assets.fonts.add(name);
      });
    }
    if (style.color && style.color !== 'rgba(0, 0, 0, 0)') assets.colors.add(style.color);
    if (style.backgroundColor && style.backgroundColor !== 'rgba(0, 0, 0, 0)') {
      assets.colors.add(style.backgroundColor);
    }
  });
  document.querySelectorAll('video, iframe[src*="youtube"], iframe[src*="vimeo"]').forEach((video) => {
    assets.videos.push({
      src: video.src || video.getAttribute('data-src') || '',
      type: video.tagName.toLowerCase(),
      width: video.offsetWidth,
      height: video.offsetHeight,
      poster: video.poster || '',
    });
  });
  document.querySelectorAll('form').forEach((form) => {
    const inputs = Array.from(form.querySelectorAll('input, textarea, select, button')).map((input) => ({
      type: input.type || '',
      name: input.name || '',
      placeholder: input.placeholder || '',
      required: Boolean(input.required),
    }));
    assets.forms.push({action: form.action || '', method: form.method || 'get', inputs: inputs});
  });
  document.querySelectorAll(
    'button, input[type="button"], input[type="submit"], .btn, [role="button"]'
  ).forEach((button) => {
    assets.buttons.push({
      text: (button.textContent || '').trim() || button.value || '',
      type: button.type || '',
      href: button.href || '',
    });
  });
  document.querySelectorAll('a[href]').forEach((link) => {
    assets.links.push({href: link.href, text: (link.textContent || '').trim(), target: link.target || ''});
  });
  document.querySelectorAll('link[rel="stylesheet"], style').forEach((sheet) => {
    if (sheet.tagName === 'LINK') {
      assets.stylesheets.push({href: sheet.href, media: sheet.media || '', type: 'external'});
    } else {
      assets.stylesheets.push({content: sheet.textContent || '', type: 'internal'});
    }
  });
  document.querySelectorAll('script[src]').forEach((script) => {
    assets.scripts.push({src: script.src, async: script.async, defer: script.defer});
  });
  return {
    images: assets.images,
    fonts: Array.from(assets.fonts),
    colors: Array.from(assets.colors),
    gradients: assets.gradients,
    videos: assets.videos,
    forms: assets.forms,
    buttons: assets.buttons,
    links: assets.links,
    stylesheets: assets.stylesheets,
    scripts: assets.scripts,
  };
}
"""

LAYOUT_SNAPSHOT_JS = """
() => {
  const boxes = [];
  for (const el of Array.from(document.querySelectorAll('*'))) {
    const rect = el.getBoundingClientRect();
    if (rect.width <= 0 || rect.height <= 0) continue;
    const style = window.getComputedStyle(el);
    boxes.push({
      tag: el.tagName.toLowerCase(),
      x: rect.left + window.scrollX,
      y: rect.top + window.scrollY,
      width: rect.width,
      height: rect.height,
      styles: {
        position: style.position,
        display: style.display,
        background_color: style.backgroundColor,
        color: style.color,
        font_size: style.fontSize,
      },
    });
  }
  return boxes;
}
"""

STRUCTURE_COUNTS_JS = """
() => {
  let textNodes = 0;
  const walker = document.createTreeWalker(document.body || document.documentElement, NodeFilter.SHOW_TEXT);
  while (walker.nextNode()) {
    if (walker.currentNode.textContent.trim()) textNodes += 1;
  }
  return {
    elements: document.querySelectorAll('*').length,
    text_nodes: textNodes,
    images: document.querySelectorAll('img').length,
    sections: document.querySelectorAll('section, header, footer, main, article').length,
    containers: document.querySelectorAll('div').length,
    headings: document.querySelectorAll('h1, h2, h3, h4, h5, h6').length,
    links: document.querySelectorAll('a').length,
  };
}
"""
