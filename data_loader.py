import pandas as pd
import config

MAX_LOG_LINES = 500


def split_csv_line(line):
    """Splits one CSV line into fields. Doubled quotes inside a quoted field are a literal quote."""
    out = []
    cur = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                cur.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == ',' and not in_quotes:
            out.append(''.join(cur))
            cur = []
        else:
            cur.append(ch)
        i += 1
    # Unterminated quotes simply run to the end of the line
    out.append(''.join(cur))
    return out


def parse_csv(text):
    """Parses a CSV payload into a list of dicts keyed by header name.

    Blank lines produce no record, short rows are padded with '' and extra cells
    beyond the header are dropped.
    """
    lines = (text or '').replace('\r\n', '\n').replace('\r', '\n').split('\n')

    # Leading blank lines are not a header
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start == len(lines):
        return []

    header = [h.replace('\ufeff', '').strip() for h in split_csv_line(lines[start])]
    records = []
    for line in lines[start + 1:]:
        if not line or not line.strip():
            continue
        cells = [c.strip() for c in split_csv_line(line)]
        row = {}
        for idx, name in enumerate(header):
            row[name] = cells[idx] if idx < len(cells) else ''
        records.append(row)
    return records


class OrderLoader:
    def __init__(self):
        self.debug_logs = []
        self.last_resolution = {}
        self.last_missing = []

    def log(self, message):
        self.debug_logs.append(message)
        if len(self.debug_logs) > MAX_LOG_LINES:
            del self.debug_logs[:-MAX_LOG_LINES]
        print(message)

    def load_text(self, text):
        """Parses a raw CSV payload into the canonical order frame."""
        records = parse_csv(text)
        frame = self.build_frame(records)
        self.log(f"✅ Loaded ORDERS: {len(frame)} rows, {len(records[0]) if records else 0} columns")
        return frame

    def build_frame(self, records):
        """Builds a fresh canonical frame from raw records. The input list is not modified."""
        if not records:
            return pd.DataFrame(columns=config.CANONICAL_FIELDS + ['search_text'], dtype=object)

        df = pd.DataFrame.from_records(records)
        df = df.astype(str)
        canonical = self._map_columns(df)

        # Free-text search runs over every raw cell, mapped or not
        canonical['search_text'] = df.apply(lambda row: ' '.join(row.values), axis=1).str.lower()
        return canonical

    def _map_columns(self, df):
        """Resolves config.COLUMN_MAPPING aliases into one column per canonical field."""
        resolution = {}
        missing = []
        out = pd.DataFrame(index=df.index)

        for std_col, aliases in config.COLUMN_MAPPING.items():
            present = [a for a in aliases if a in df.columns]
            if not present:
                out[std_col] = ''
                missing.append(std_col)
                continue

            series = df[present[0]]
            # First non-empty alias wins per row
            for alias in present[1:]:
                series = series.where(series != '', df[alias])
            out[std_col] = series
            resolution[std_col] = present

        if missing and missing != self.last_missing:
            self.log(f"⚠️ Header lacks fields: {', '.join(missing)} (treated as empty)")

        self.last_resolution = resolution
        self.last_missing = missing
        return out


if __name__ == "__main__":
    import sys

    loader = OrderLoader()
    print("--- Starting Data Load Test ---")
    with open(sys.argv[1], 'r', encoding='utf-8-sig') as f:
        df = loader.load_text(f.read())

    print("\n--- Summary ---")
    print(f"Order Rows: {len(df)}")
    print("Resolved Columns:", loader.last_resolution)
    if not df.empty:
        print("Head:\n", df.head(5))
