"""
Cloud Vision template.

Runs one image (or one PDF/TIFF file) through the Vision batch-annotate
API per call and turns empty or failed responses into ``AnalysisError``.
"""

import os
import logging
from typing import Any, BinaryIO, Iterable, List, Optional, Union

from google.api_core.client_options import ClientOptions
from google.cloud import vision

from ..config.credentials import load_credentials
from ..config.settings import TemplatesConfig, get_config
from ..exceptions import AnalysisError

logger = logging.getLogger(__name__)

READ_ERROR_MESSAGE = "Failed to read image bytes from provided resource."
EMPTY_RESPONSE_MESSAGE = "Failed to receive valid response Vision APIs; empty response received."

ImageResource = Union[bytes, bytearray, str, os.PathLike, BinaryIO]


def read_resource(resource: ImageResource) -> bytes:
    """
    Read the full content of an image resource.

    Args:
        resource: Raw bytes, a filesystem path, or a binary file-like object

    Raises:
        AnalysisError: If the resource cannot be opened or read.
        TypeError: If the resource is none of the accepted kinds.
    """
    if not isinstance(resource, (bytes, bytearray, str, os.PathLike)) and not hasattr(resource, 'read'):
        raise TypeError(
            f"Unsupported image resource {type(resource).__name__}; expected bytes, "
            f"a file path or a binary file-like object"
        )

    try:
        if isinstance(resource, (bytes, bytearray)):
            return bytes(resource)
        if isinstance(resource, (str, os.PathLike)):
            with open(resource, 'rb') as f:
                return f.read()
        return resource.read()
    except OSError as e:
        raise AnalysisError(READ_ERROR_MESSAGE) from e


def _raise_on_error(status: Any) -> None:
    """Raise the embedded ``google.rpc.Status`` of a response, if any."""
    if status.code or status.message:
        raise AnalysisError(status.message or f"Vision API returned error code {status.code}")


def _features(feature_types: Iterable) -> List[vision.Feature]:
    distinct = list(dict.fromkeys(feature_types))
    if not distinct:
        raise ValueError("At least one feature type is required.")
    return [vision.Feature(type_=feature_type) for feature_type in distinct]


class CloudVisionTemplate:
    """
    Image and document analysis through an injected ``ImageAnnotatorClient``.

    Example:
        >>> template = create_vision_template()
        >>> response = template.analyze_image(
        ...     "photo.jpg",
        ...     vision.Feature.Type.LABEL_DETECTION,
        ...     vision.Feature.Type.FACE_DETECTION,
        ... )
        >>> [label.description for label in response.label_annotations]
    """

    def __init__(self, image_annotator_client: Any):
        if image_annotator_client is None:
            raise ValueError("ImageAnnotatorClient must not be null.")
        self.image_annotator_client = image_annotator_client

    def analyze_image(
        self,
        resource: ImageResource,
        *feature_types: vision.Feature.Type,
        image_context: Optional[vision.ImageContext] = None
    ) -> vision.AnnotateImageResponse:
        """
        Analyze an image for the requested features.

        Args:
            resource: Image bytes, path or binary stream
            *feature_types: Features to request; duplicates are sent once
            image_context: Optional hints (language, crop, lat/long)

        Returns:
            The single AnnotateImageResponse for the image.

        Raises:
            AnalysisError: If the image cannot be read, the response is
                empty, or the response carries an error status.
        """
        features = _features(feature_types)
        content = read_resource(resource)

        image_request = vision.AnnotateImageRequest(
            image=vision.Image(content=content),
            features=features,
        )
        if image_context is not None:
            image_request.image_context = image_context

        batch_response = self.image_annotator_client.batch_annotate_images(
            request=vision.BatchAnnotateImagesRequest(requests=[image_request])
        )

        if not batch_response.responses:
            raise AnalysisError(EMPTY_RESPONSE_MESSAGE)

        response = batch_response.responses[0]
        _raise_on_error(response.error)
        logger.debug(f"Analyzed {len(content)} byte image for {len(features)} features")
        return response

    def extract_text_from_image(
        self,
        resource: ImageResource,
        image_context: Optional[vision.ImageContext] = None
    ) -> str:
        """
        Run text detection and return the recognized text.

        Returns an empty string when the image contains no text.
        """
        response = self.analyze_image(
            resource,
            vision.Feature.Type.TEXT_DETECTION,
            image_context=image_context
        )
        return response.full_text_annotation.text

    def analyze_file(
        self,
        resource: ImageResource,
        mime_type: str,
        *feature_types: vision.Feature.Type,
        image_context: Optional[vision.ImageContext] = None,
        pages: Optional[List[int]] = None
    ) -> vision.AnnotateFileResponse:
        """
        Analyze a PDF, TIFF or GIF document.

        Args:
            resource: Document bytes, path or binary stream
            mime_type: "application/pdf", "image/tiff" or "image/gif"
            *feature_types: Features to request
            image_context: Optional hints
            pages: 1-based pages to analyze; the API default is the first five

        Raises:
            AnalysisError: If the file cannot be read, the response is
                empty, or the response carries an error status.
        """
        features = _features(feature_types)
        content = read_resource(resource)

        file_request = vision.AnnotateFileRequest(
            input_config=vision.InputConfig(content=content, mime_type=mime_type),
            features=features,
        )
        if image_context is not None:
            file_request.image_context = image_context
        if pages:
            file_request.pages = list(pages)

        batch_response = self.image_annotator_client.batch_annotate_files(
            request=vision.BatchAnnotateFilesRequest(requests=[file_request])
        )

        if not batch_response.responses:
            raise AnalysisError(EMPTY_RESPONSE_MESSAGE)

        response = batch_response.responses[0]
        _raise_on_error(response.error)
        logger.debug(f"Analyzed {mime_type} document with {response.total_pages} pages")
        return response

    def extract_text_from_file(
        self,
        resource: ImageResource,
        mime_type: str,
        image_context: Optional[vision.ImageContext] = None,
        pages: Optional[List[int]] = None
    ) -> List[str]:
        """
        Run document text detection and return one string per analyzed page.

        Raises:
            AnalysisError: As for ``analyze_file``, or if any page carries an
                error status.
        """
        response = self.analyze_file(
            resource,
            mime_type,
            vision.Feature.Type.DOCUMENT_TEXT_DETECTION,
            image_context=image_context,
            pages=pages
        )

        texts = []
        for page_response in response.responses:
            _raise_on_error(page_response.error)
            texts.append(page_response.full_text_annotation.text)
        return texts


def create_vision_template(config: Optional[TemplatesConfig] = None) -> CloudVisionTemplate:
    """
    Create a template wired to a new ``ImageAnnotatorClient``.

    Args:
        config: Template configuration. If None, read from the environment.
    """
    config = config or get_config()

    client_options = None
    if config.vision.api_endpoint:
        client_options = ClientOptions(api_endpoint=config.vision.api_endpoint)

    client = vision.ImageAnnotatorClient(
        credentials=load_credentials(config.service_account_json),
        client_options=client_options
    )
    logger.info(f"CloudVisionTemplate initialized (endpoint: {config.vision.api_endpoint or 'default'})")
    return CloudVisionTemplate(client)
