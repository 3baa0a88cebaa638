"""
OCR Service
Image preprocessing, dual-language OCR and identity-card processing
"""
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytesseract
from PIL import Image, ImageFilter, ImageOps
from loguru import logger

from formfill.config import settings
from formfill.schemas.document import BoundingBox, IdentityRecord, RecognizedDocument, RecognizedWord
from formfill.services.extraction_service import ExtractionError, IdentityExtractor, fallback_gender
from formfill.utils.file_utils import validate_image_file

# Set Tesseract command path
pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD


class OCRService:
    """Service for OCR processing of identity card photos"""

    def __init__(
        self,
        languages: Optional[Sequence[str]] = None,
        extractor: Optional[IdentityExtractor] = None,
    ):
        self.languages = list(languages or settings.OCR_LANGUAGES)
        self.extractor = extractor or IdentityExtractor()

    async def process_identity_card(self, file_path: Union[str, Path]) -> IdentityRecord:
        """
        Main method to process an identity card photo.
        Raises ExtractionError when the image is unusable or no name can be read.
        """
        start_time = time.time()

        is_valid, error = validate_image_file(file_path)
        if not is_valid:
            logger.warning(f"Rejected image {file_path}: {error}")
            raise ExtractionError(error, detail=f"invalid image file: {file_path}")

        try:
            image = self._load_image(file_path)
            processed = await self.preprocess_image(image)
            document = await self.recognize(processed)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            logger.exception(f"OCR processing error: {e}")
            raise ExtractionError(detail=str(e)) from e

        record = self.extractor.extract(document)

        # Gender is never left blank on a processed card
        if not record.gender:
            record = record.model_copy(update={"gender": fallback_gender(document.full_text)})

        processing_time = int((time.time() - start_time) * 1000)
        logger.info(f"Identity card processed in {processing_time}ms")
        return record

    def _load_image(self, file_path: Union[str, Path]) -> Image.Image:
        """Load image file using PIL"""
        image = Image.open(file_path)
        image.load()
        return image

    async def preprocess_image(self, image: Image.Image) -> Image.Image:
        """
        Preprocess image for better OCR accuracy using PIL
        """
        # Convert to grayscale
        gray = image.convert('L')

        # Resize if too small
        width, height = gray.size
        if width < 1000:
            scale = 1000 / width
            new_size = (int(width * scale), int(height * scale))
            gray = gray.resize(new_size, Image.Resampling.LANCZOS)

        # Apply sharpening filter
        sharpened = gray.filter(ImageFilter.SHARPEN)

        # Enhance contrast
        enhanced = ImageOps.autocontrast(sharpened)

        return enhanced

    async def recognize(self, image: Image.Image) -> RecognizedDocument:
        """Run one OCR pass per configured language and merge them in order"""
        passes = [await self._run_ocr(image, lang) for lang in self.languages]
        return RecognizedDocument.merge(passes)

    async def _run_ocr(self, image: Image.Image, lang: str) -> RecognizedDocument:
        """
        Run OCR on preprocessed image
        Returns words with confidence and boxes, line texts and the full text
        """
        data = pytesseract.image_to_data(
            image, lang=lang, output_type=pytesseract.Output.DICT
        )

        words: List[RecognizedWord] = []
        line_words: Dict[Tuple[int, int, int], List[str]] = {}
        for i, raw_text in enumerate(data['text']):
            text = (raw_text or '').strip()
            confidence = float(data['conf'][i])
            # Tesseract reports -1 for layout rows
            if not text or confidence < 0:
                continue

            left, top = data['left'][i], data['top'][i]
            words.append(RecognizedWord(
                text=text,
                confidence=min(confidence / 100.0, 1.0),
                bbox=BoundingBox(
                    x0=left, y0=top, x1=left + data['width'][i], y1=top + data['height'][i]
                ),
            ))
            key = (data['block_num'][i], data['par_num'][i], data['line_num'][i])
            line_words.setdefault(key, []).append(text)

        lines = [' '.join(tokens) for tokens in line_words.values()]

        # Get text
        text = pytesseract.image_to_string(image, lang=lang)

        avg_confidence = sum(w.confidence for w in words) / len(words) if words else 0
        logger.info(f"OCR pass lang={lang}: {len(words)} words, confidence {avg_confidence:.2f}")
        logger.debug(f"OCR extracted text (lang={lang}):\n{text}")

        return RecognizedDocument(full_text=text.strip(), words=words, lines=lines)
