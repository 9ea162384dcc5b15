# app.py
# Pick a 64x32 24-bit .bmp and show the C array for the Jumbotron driver.
# No flags, just click. Requires: pip install pillow

import logging
import os
import tkinter as tk
from tkinter import filedialog, messagebox

from PIL import Image, ImageTk

from jumbotron_nab.converter import convert

logger = logging.getLogger(__name__)

PREVIEW_SCALE = 4


def pictures_dir() -> str:
    path = os.path.join(os.path.expanduser("~"), "Pictures")
    return path if os.path.isdir(path) else os.path.expanduser("~")


class JumbotronApp:
    def __init__(self, root: tk.Tk):
        self.root = root
        self.preview = None
        root.title("Jumbotron Image Nab")

        top = tk.Frame(root)
        top.pack(fill="x", padx=8, pady=8)
        tk.Button(top, text="Select File...", command=self.select_file).pack(side="left")
        self.file_name = tk.StringVar(master=root)
        tk.Entry(top, textvariable=self.file_name, state="readonly").pack(
            side="left", fill="x", expand=True, padx=(8, 0)
        )

        self.image_label = tk.Label(root)
        self.image_label.pack(padx=8)

        body = tk.Frame(root)
        body.pack(fill="both", expand=True, padx=8, pady=8)
        scroll = tk.Scrollbar(body)
        scroll.pack(side="right", fill="y")
        self.text = tk.Text(body, wrap="none", height=20, yscrollcommand=scroll.set, state="disabled")
        self.text.pack(side="left", fill="both", expand=True)
        scroll.config(command=self.text.yview)

    def select_file(self):
        path = filedialog.askopenfilename(
            parent=self.root,
            title="Select bitmap",
            initialdir=pictures_dir(),
            filetypes=[("Bitmap Files", "*.bmp")],
        )
        if not path:
            return
        self.load(path)

    def load(self, path) -> bool:
        """Convert ``path`` and show it; on failure report and keep what was there."""
        result = convert(path)
        if not result.ok:
            logger.error(result.error)
            messagebox.showerror("Error", result.error, parent=self.root)
            return False

        try:
            preview = self.make_preview(path)
        except OSError as e:
            message = f"An error occurred reading {path}: {e}"
            logger.error(message)
            messagebox.showerror("Error", message, parent=self.root)
            return False

        self.text.config(state="normal")
        self.text.delete("1.0", "end")
        self.text.insert("1.0", result.text)
        self.text.config(state="disabled")
        self.file_name.set(path)
        self.preview = preview
        self.image_label.config(image=preview, width=preview.width(), height=preview.height())
        return True

    def make_preview(self, path) -> ImageTk.PhotoImage:
        with Image.open(path) as img:
            # Scale up so single pixels are visible
            img = img.convert("RGB").resize(
                (img.width * PREVIEW_SCALE, img.height * PREVIEW_SCALE), Image.NEAREST
            )
        return ImageTk.PhotoImage(img, master=self.root)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    root = tk.Tk()
    JumbotronApp(root)
    root.mainloop()


if __name__ == "__main__":
    main()
