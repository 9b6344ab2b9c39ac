import numpy as np
from sklearn.metrics import (accuracy_score, precision_score, recall_score, f1_score,
                             confusion_matrix, cohen_kappa_score)


class ClassificationMetrics:
    """地面/地物分类评估指标计算类

    标签约定：True（或1）表示地物，False（或0）表示地面。
    """

    @staticmethod
    def compute_metrics(true_labels, pred_labels):
        """
        计算分类评估指标

        Parameters
        ----------
        true_labels : np.ndarray
            参考标签
        pred_labels : np.ndarray
            预测标签

        Returns
        -------
        metrics : dict
            包含各种评估指标的字典，地物为正类
        """
        true_labels = np.asarray(true_labels).astype(bool)
        pred_labels = np.asarray(pred_labels).astype(bool)

        metrics = {
            'accuracy': accuracy_score(true_labels, pred_labels),
            'precision': precision_score(true_labels, pred_labels, zero_division=0),
            'recall': recall_score(true_labels, pred_labels, zero_division=0),
            'f1': f1_score(true_labels, pred_labels, zero_division=0),
            'confusion_matrix': confusion_matrix(true_labels, pred_labels, labels=[False, True])
        }

        return metrics

    @staticmethod
    def compute_filter_errors(true_labels, pred_labels):
        """
        计算ISPRS滤波测试的误差指标

        Parameters
        ----------
        true_labels : np.ndarray
            参考标签
        pred_labels : np.ndarray
            预测标签

        Returns
        -------
        errors : dict
            type_i：被误判为地物的地面点比例
            type_ii：被误判为地面的地物点比例
            total：总误差
            kappa：Cohen's kappa系数
        """
        true_labels = np.asarray(true_labels).astype(bool)
        pred_labels = np.asarray(pred_labels).astype(bool)

        # 行为参考标签（地面、地物），列为预测标签
        (gg, go), (og, oo) = confusion_matrix(true_labels, pred_labels, labels=[False, True])
        n_ground = gg + go
        n_object = og + oo

        errors = {
            'type_i': go / n_ground if n_ground else 0.0,
            'type_ii': og / n_object if n_object else 0.0,
            'total': (go + og) / true_labels.size if true_labels.size else 0.0,
            'kappa': cohen_kappa_score(true_labels, pred_labels, labels=[False, True])
        }

        return errors
